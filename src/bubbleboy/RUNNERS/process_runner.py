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
Execution of commands inside running containers through the ``docker exec``
command line, which handles TTY allocation and stdio forwarding.
"""
import subprocess
import sys
from typing import List


def _exit_status(returncode: int) -> int:
    """Maps a subprocess return code to a shell-style exit status."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


class DockerExecRunner:
    """
    Runs ``docker exec`` against a container.
    """
    def __init__(self, docker_binary: str = "docker"):
        """
        Initializes the runner.

        Args:
            docker_binary (str): Path or name of the docker CLI.
        """
        self.docker_binary = docker_binary

    def _base(self, container_id: str, *flags: str) -> List[str]:
        return [self.docker_binary, "exec", *flags, container_id]

    def run_interactive(self, container_id: str, command: List[str]) -> int:
        """
        Runs a command with the caller's stdio attached; blocks until it exits.

        A TTY is requested only when stdin is one, so piping into the session
        still works.

        Args:
            container_id (str): Target container.
            command (List[str]): Command and arguments.

        Returns:
            int: The command's exit status.
        """
        flags = ["-it"] if sys.stdin.isatty() else ["-i"]
        proc = subprocess.run(self._base(container_id, *flags) + list(command))
        return _exit_status(proc.returncode)

    def run_streaming(self, container_id: str, command: List[str]) -> int:
        """
        Runs a command without a TTY, streaming its output live.

        Args:
            container_id (str): Target container.
            command (List[str]): Command and arguments.

        Returns:
            int: The command's exit status.
        """
        proc = subprocess.run(self._base(container_id) + list(command))
        return _exit_status(proc.returncode)

    def run_silent(self, container_id: str, shell_command: str) -> bool:
        """
        Runs a shell command with output captured.

        Args:
            container_id (str): Target container.
            shell_command (str): Passed to ``sh -c``.

        Returns:
            bool: True if the command exited 0.
        """
        try:
            proc = subprocess.run(
                self._base(container_id) + ["sh", "-c", shell_command],
                capture_output=True,
                text=True,
            )
        except OSError as e:
            print(f"Warning: failed to run docker exec: {e}")
            return False
        return proc.returncode == 0
