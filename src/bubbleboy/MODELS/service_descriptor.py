"""
Models describing auxiliary service containers and how to wait for them.
"""
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class ReadinessPolicy(BaseModel):
    """
    Fixed-interval retry budget for readiness probes.
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = 30
    delay: float = 2.0


class VolumeMount(BaseModel):
    """
    A named Docker volume mounted into a service container.
    """
    name: str
    target: str

    def spec(self) -> str:
        return f"{self.name}:{self.target}"


class ServiceDescriptor(BaseModel):
    """
    Everything needed to run one auxiliary service alongside the primary container.

    ``container_env`` is injected into the service container itself, while
    ``primary_env`` is injected into the primary container so it can reach
    the service.
    """
    name: str
    image: str
    container_env: List[str] = []
    primary_env: List[Tuple[str, str]] = []
    volume: Optional[VolumeMount] = None
    readiness_command: List[str] = []


class RunningService(BaseModel):
    """
    A service container that has been started and passed its readiness probe.
    """
    name: str
    container_id: str
