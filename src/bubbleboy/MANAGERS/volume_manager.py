"""
Volume management for service data, backed by named Docker volumes that
outlive the session so databases keep their data between runs.
"""
from typing import Any, List

from docker.errors import DockerException, NotFound

from ..UTILS.naming import matches_stale_prefix


class VolumeManager:
    """
    Creates, lists and removes named Docker volumes.
    """
    def __init__(self, api: Any):
        """
        Initializes the volume manager.

        :param api: Low-level Docker API client.
        """
        self.api = api

    def ensure_volume(self, name: str) -> str:
        """
        Creates the named volume. Docker treats creating an existing volume
        as a no-op, so this is safe to call on every run.

        :param name: Volume name.
        :return: The volume name.
        """
        self.api.create_volume(name=name)
        return name

    def list_volumes(self, prefix: str) -> List[str]:
        """
        Returns names of volumes belonging to the given project prefix.

        :param prefix: Project prefix, e.g. ``bubble-boy-myproject``.
        """
        response = self.api.volumes(filters={"name": prefix}) or {}
        volumes = response.get("Volumes") or []
        return [v["Name"] for v in volumes if matches_stale_prefix(v.get("Name", ""), prefix)]

    def remove_volume(self, name: str) -> bool:
        """
        Removes a named volume.

        :param name: Volume name.
        :return: True if removed, False if it was already gone or in use.
        """
        try:
            self.api.remove_volume(name)
        except NotFound:
            return False
        except DockerException as e:
            print(f"Warning: failed to remove volume {name}: {e}")
            return False
        return True
