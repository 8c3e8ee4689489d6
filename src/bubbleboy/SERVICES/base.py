"""
Common interface for auxiliary service containers.
"""
from typing import List, Optional, Tuple

from ..MODELS.service_descriptor import ServiceDescriptor, VolumeMount
from ..UTILS import naming


class Service:
    """
    A service container (database, cache...) that runs next to the dev
    container on the session network. Subclasses fill in the details; the
    launcher only ever sees the resulting ServiceDescriptor.
    """
    name = ""
    data_dir: Optional[str] = None

    def __init__(self, project: str):
        self.project = project

    def image(self) -> str:
        raise NotImplementedError

    def container_env(self) -> List[str]:
        return []

    def primary_env(self) -> List[Tuple[str, str]]:
        return []

    def readiness_command(self) -> List[str]:
        raise NotImplementedError

    def volume(self) -> Optional[VolumeMount]:
        if not self.data_dir:
            return None
        return VolumeMount(name=naming.volume_name(self.project, self.name), target=self.data_dir)

    def container_name(self) -> str:
        return naming.service_container_name(self.project, self.name)

    def describe(self) -> ServiceDescriptor:
        return ServiceDescriptor(
            name=self.name,
            image=self.image(),
            container_env=self.container_env(),
            primary_env=self.primary_env(),
            volume=self.volume(),
            readiness_command=self.readiness_command(),
        )
