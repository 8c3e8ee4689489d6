"""
Resolution of the Claude Code OAuth token passed into the dev container.
"""
import os
import subprocess
import sys
from typing import Optional

ENV_VAR_NAME = "CLAUDE_CODE_OAUTH_TOKEN"
KEYCHAIN_SERVICE = "Claude Code-credentials"
KEYCHAIN_ACCOUNT = "oauth_token"


def _keychain_token() -> Optional[str]:
    """
    Reads the token from the macOS Keychain via the ``security`` tool.
    """
    try:
        result = subprocess.run(
            ["security", "find-generic-password",
             "-s", KEYCHAIN_SERVICE, "-a", KEYCHAIN_ACCOUNT, "-w"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        print(f"Warning: keychain lookup failed: {e}")
        return None

    if result.returncode != 0:
        return None
    token = result.stdout.strip()
    if not token:
        print("Warning: keychain entry found but token is empty")
        return None
    return token


def resolve_oauth_token() -> Optional[str]:
    """
    Resolves the OAuth token: the environment variable first, then the macOS
    Keychain. A miss is not an error; the session simply runs without it.

    Returns:
        Optional[str]: The token, or None.
    """
    token = os.environ.get(ENV_VAR_NAME)
    if token:
        print("OAuth token found in environment variable")
        return token

    if sys.platform == "darwin":
        token = _keychain_token()
        if token:
            print("OAuth token extracted from macOS Keychain")
            return token

    print("Warning: no OAuth token found, Claude Code authentication may fail inside the container")
    return None


def oauth_token_source() -> Optional[str]:
    """
    Reports where ``resolve_oauth_token`` would look for the token, without
    reading it: ``"environment"``, ``"keychain"`` (macOS, looked up at run
    time) or None when no source is available.
    """
    if os.environ.get(ENV_VAR_NAME):
        return "environment"
    if sys.platform == "darwin":
        return "keychain"
    return None
