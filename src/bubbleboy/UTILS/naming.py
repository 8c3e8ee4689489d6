"""
Naming contract for every Docker resource bubbleboy creates.

The "clean" command and stale-resource reconciliation both rely on these
names, so they must stay bit-exact.
"""
import os
from typing import Optional

PREFIX = "bubble-boy"
FINGERPRINT_TAG_LENGTH = 12


def project_name(path: Optional[str] = None) -> str:
    """
    Returns the project name: the basename of ``path`` (default: the current
    working directory), or ``project`` when it cannot be determined.
    """
    try:
        path = path or os.getcwd()
    except OSError:
        return "project"
    name = os.path.basename(os.path.normpath(path))
    return name or "project"


def project_prefix(project: str) -> str:
    return f"{PREFIX}-{project}"


def container_name(project: str) -> str:
    return project_prefix(project)


def service_container_name(project: str, service: str) -> str:
    return f"{project_prefix(project)}-{service}"


def network_name(project: str) -> str:
    return project_prefix(project)


def volume_name(project: str, service: str) -> str:
    return f"{project_prefix(project)}-{service}-data"


def image_tag(fingerprint: str) -> str:
    return f"{PREFIX}:{fingerprint[:FINGERPRINT_TAG_LENGTH]}"


def matches_stale_prefix(name: str, prefix: str) -> bool:
    """
    Checks whether a resource name belongs to the given project prefix.

    A name matches when it equals the prefix or continues with a ``-``
    separator, so ``proj-x`` claims ``proj-x-mysql`` but not ``proj-xray``.
    Container names reported by the Docker API carry a leading ``/``,
    which is ignored.

    :param name: Container or network name.
    :param prefix: Project prefix, e.g. ``bubble-boy-myproject``.
    :return: True if the resource belongs to the project.
    """
    name = name.lstrip("/")
    return name == prefix or name.startswith(f"{prefix}-")
