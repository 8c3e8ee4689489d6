"""
Models for Docker resources created during a session.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ResourceKind(str, Enum):
    """
    Kinds of remote resources a session can own.
    """
    CONTAINER = "container"
    NETWORK = "network"


class ResourceRole(str, Enum):
    """
    Role of a resource within a session. Teardown runs primary first,
    then services, then the network.
    """
    PRIMARY = "primary"
    SERVICE = "service"
    NETWORK = "network"


class ManagedResource(BaseModel):
    """
    A resource that exists remotely and must be removed at teardown.
    """
    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    name: str
    role: ResourceRole
    resource_id: Optional[str] = None

    @property
    def ref(self) -> str:
        """Identifier used for remote remove calls."""
        return self.resource_id or self.name

    @classmethod
    def container(cls, name: str, container_id: str, role: ResourceRole) -> "ManagedResource":
        return cls(kind=ResourceKind.CONTAINER, name=name, resource_id=container_id, role=role)

    @classmethod
    def network(cls, name: str, network_id: Optional[str] = None) -> "ManagedResource":
        return cls(kind=ResourceKind.NETWORK, name=name, resource_id=network_id, role=ResourceRole.NETWORK)
