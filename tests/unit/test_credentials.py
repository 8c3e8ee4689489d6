# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for OAuth token resolution.
"""
import subprocess

from bubbleboy.UTILS import credentials


def test_env_var_wins(monkeypatch, capsys):
    monkeypatch.setenv("CLAUDE_CODE_OAUTH_TOKEN", "env-token")
    assert credentials.resolve_oauth_token() == "env-token"
    assert "env-token" not in capsys.readouterr().out


def test_empty_env_var_is_ignored(monkeypatch):
    monkeypatch.setenv("CLAUDE_CODE_OAUTH_TOKEN", "")
    monkeypatch.setattr(credentials.sys, "platform", "linux")
    assert credentials.resolve_oauth_token() is None


def test_keychain_on_macos(monkeypatch, capsys):
    monkeypatch.delenv("CLAUDE_CODE_OAUTH_TOKEN", raising=False)
    monkeypatch.setattr(credentials.sys, "platform", "darwin")
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="kc-token\n", stderr="")

    monkeypatch.setattr(credentials.subprocess, "run", fake_run)
    assert credentials.resolve_oauth_token() == "kc-token"
    assert calls[0][:2] == ["security", "find-generic-password"]
    assert "Claude Code-credentials" in calls[0]
    assert "kc-token" not in capsys.readouterr().out


def test_keychain_miss(monkeypatch, capsys):
    monkeypatch.delenv("CLAUDE_CODE_OAUTH_TOKEN", raising=False)
    monkeypatch.setattr(credentials.sys, "platform", "darwin")
    monkeypatch.setattr(
        credentials.subprocess, "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 44, stdout="", stderr="not found"),
    )
    assert credentials.resolve_oauth_token() is None
    assert "Warning:" in capsys.readouterr().out


def test_no_keychain_outside_macos(monkeypatch):
    monkeypatch.delenv("CLAUDE_CODE_OAUTH_TOKEN", raising=False)
    monkeypatch.setattr(credentials.sys, "platform", "linux")

    def fail(*args, **kwargs):
        raise AssertionError("keychain must not be queried")

    monkeypatch.setattr(credentials.subprocess, "run", fail)
    assert credentials.resolve_oauth_token() is None


def test_token_source_never_reads_the_token(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("keychain must not be queried")

    monkeypatch.setattr(credentials.subprocess, "run", fail)
    monkeypatch.setenv("CLAUDE_CODE_OAUTH_TOKEN", "env-token")
    assert credentials.oauth_token_source() == "environment"

    monkeypatch.delenv("CLAUDE_CODE_OAUTH_TOKEN")
    monkeypatch.setattr(credentials.sys, "platform", "darwin")
    assert credentials.oauth_token_source() == "keychain"

    monkeypatch.setattr(credentials.sys, "platform", "linux")
    assert credentials.oauth_token_source() is None
