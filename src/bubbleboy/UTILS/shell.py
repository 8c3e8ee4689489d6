"""
Shell detection and dotfile mounts for the dev container.
"""
import os
from typing import List, Optional

DOTFILES = [
    ".zshrc",
    ".bashrc",
    ".bash_profile",
    ".profile",
    ".aliases",
    ".inputrc",
    ".vimrc",
    ".gitconfig",
    ".tmux.conf",
]

CONTAINER_HOME = "/home/dev"


def detect_shell() -> str:
    """
    Returns the basename of ``$SHELL`` (e.g. ``zsh``), or ``bash``.
    """
    shell = os.environ.get("SHELL", "")
    return os.path.basename(shell) or "bash"


def resolve_shell(config_shell: Optional[str] = None) -> str:
    return config_shell or detect_shell()


def collect_dotfile_mounts(home: Optional[str] = None) -> List[str]:
    """
    Builds read-only bind mounts for the dotfiles that exist on the host.

    :param home: Home directory to scan. Defaults to the caller's home.
    :return: Mounts in ``host_path:/home/dev/name:ro`` format.
    """
    home = home or os.path.expanduser("~")
    mounts = []
    for dotfile in DOTFILES:
        host_path = os.path.join(home, dotfile)
        if os.path.exists(host_path):
            mounts.append(f"{host_path}:{CONTAINER_HOME}/{dotfile}:ro")
    return mounts
