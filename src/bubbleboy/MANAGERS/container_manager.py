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
Lifecycle management for session containers: create, start, exec into,
stop and remove.
"""
import os
from typing import Any, Dict, List, Optional

from docker.errors import DockerException, ImageNotFound, NotFound
from docker.types import Mount
from pydantic import BaseModel

from ..MODELS.resources import ManagedResource, ResourceRole
from ..MODELS.service_descriptor import VolumeMount
from ..RUNNERS.process_runner import DockerExecRunner
from ..UTILS.naming import matches_stale_prefix
from ..errors import ContainerError
from .cleanup_coordinator import CleanupCoordinator

WORKSPACE_DIR = "/workspace"
STOP_TIMEOUT = 5


def host_user() -> Optional[str]:
    """Returns ``uid:gid`` of the calling user, or None where unsupported."""
    if not hasattr(os, "getuid"):
        return None
    return f"{os.getuid()}:{os.getgid()}"


class ContainerOptions(BaseModel):
    """
    Everything needed to create one container.

    ``project_dir`` is bind mounted read-write at ``/workspace``; ``binds`` are
    extra ``host:container[:mode]`` specs; ``volumes`` are named volumes.
    """
    image: str
    name: str
    command: Optional[List[str]] = None
    environment: List[str] = []
    user: Optional[str] = None
    project_dir: Optional[str] = None
    binds: List[str] = []
    volumes: List[VolumeMount] = []
    network: Optional[str] = None
    aliases: List[str] = []


class ContainerManager:
    """
    Manages containers through the low-level Docker API and runs commands in
    them through ``docker exec``.
    """
    def __init__(self,
                 api: Any,
                 coordinator: Optional[CleanupCoordinator] = None,
                 runner: Optional[DockerExecRunner] = None):
        """
        Initializes the container manager.

        :param api: Low-level Docker API client.
        :param coordinator: Registry that created containers are tracked in.
        :param runner: Runner used for exec commands.
        """
        self.api = api
        self.coordinator = coordinator
        self.runner = runner or DockerExecRunner()

    def _host_config(self, opts: ContainerOptions) -> Dict[str, Any]:
        binds = []
        if opts.project_dir:
            binds.append(f"{os.path.abspath(opts.project_dir)}:{WORKSPACE_DIR}")
        binds.extend(opts.binds)
        mounts = [Mount(target=v.target, source=v.name, type="volume") for v in opts.volumes]
        return self.api.create_host_config(
            binds=binds or None,
            mounts=mounts or None,
            network_mode=opts.network,
        )

    def _networking_config(self, opts: ContainerOptions) -> Optional[Dict[str, Any]]:
        if not opts.network:
            return None
        endpoint = self.api.create_endpoint_config(aliases=opts.aliases or None)
        return self.api.create_networking_config({opts.network: endpoint})

    def create_container(self, opts: ContainerOptions, role: ResourceRole = ResourceRole.PRIMARY) -> str:
        """
        Creates a container and tracks it for cleanup.

        :param opts: Container options.
        :param role: Role recorded with the tracked resource.
        :return: The container id.
        :raises ContainerError: If the image is unknown or Docker rejects the request.
        """
        try:
            created = self.api.create_container(
                image=opts.image,
                command=opts.command,
                name=opts.name,
                user=opts.user,
                environment=opts.environment or None,
                working_dir=WORKSPACE_DIR if opts.project_dir else None,
                host_config=self._host_config(opts),
                networking_config=self._networking_config(opts),
                detach=True,
            )
        except ImageNotFound as e:
            raise ContainerError(f"image {opts.image} not found: {e}") from e
        except DockerException as e:
            raise ContainerError(f"failed to create container {opts.name}: {e}") from e

        container_id = created["Id"]
        if self.coordinator is not None:
            self.coordinator.track(ManagedResource.container(opts.name, container_id, role))
        return container_id

    def start_container(self, container_id: str) -> None:
        try:
            self.api.start(container_id)
        except DockerException as e:
            raise ContainerError(f"failed to start container {container_id}: {e}") from e

    def create_and_start(self, opts: ContainerOptions, role: ResourceRole = ResourceRole.PRIMARY) -> str:
        """
        Creates and starts a container. The container is tracked as soon as it
        exists, so a failed start still gets torn down.

        :return: The container id.
        """
        container_id = self.create_container(opts, role)
        self.start_container(container_id)
        print(f"[{opts.name}] Started container {container_id[:12]}")
        return container_id

    def attach_interactive(self, container_id: str, command: List[str]) -> int:
        """
        Runs an interactive command in the container; returns its exit status.

        :raises ContainerError: If the docker CLI cannot be launched.
        """
        try:
            return self.runner.run_interactive(container_id, command)
        except OSError as e:
            raise ContainerError(f"failed to exec {command[0] if command else ''} in {container_id[:12]}: {e}") from e

    def exec_streaming(self, container_id: str, args: List[str]) -> int:
        """
        Runs a command without a TTY, streaming output; returns its exit status.

        :raises ContainerError: If the docker CLI cannot be launched.
        """
        try:
            return self.runner.run_streaming(container_id, args)
        except OSError as e:
            raise ContainerError(f"failed to exec {args[0] if args else ''} in {container_id[:12]}: {e}") from e

    def exec_silent(self, container_id: str, shell_command: str) -> bool:
        """Runs ``sh -c shell_command`` with output captured; True on success."""
        return self.runner.run_silent(container_id, shell_command)

    def stop_and_remove(self, container_id: str, timeout: int = STOP_TIMEOUT) -> None:
        """
        Stops a container with a grace period, then force-removes it.

        Stop failures are only reported; a container that is already gone
        counts as removed.

        :raises ContainerError: If removal fails for another reason.
        """
        try:
            self.api.stop(container_id, timeout=timeout)
        except NotFound:
            return
        except DockerException as e:
            print(f"Warning: failed to stop container {container_id}: {e}")

        try:
            self.api.remove_container(container_id, force=True)
        except NotFound:
            return
        except DockerException as e:
            raise ContainerError(f"failed to remove container {container_id}: {e}") from e

    def list_containers(self, prefix: str) -> List[Dict[str, str]]:
        """
        Lists containers (including stopped ones) belonging to a prefix.

        :return: ``{"name": ..., "id": ...}`` entries, names without the leading ``/``.
        """
        try:
            containers = self.api.containers(all=True, filters={"name": prefix})
        except DockerException as e:
            raise ContainerError(f"failed to list containers: {e}") from e

        matched = []
        for container in containers or []:
            for name in container.get("Names") or []:
                if matches_stale_prefix(name, prefix):
                    matched.append({"name": name.lstrip("/"), "id": container["Id"]})
                    break
        return matched

    def remove_existing(self, name: str) -> None:
        """
        Removes any container with exactly this name left over from an
        earlier run, so the name can be reused.
        """
        for container in self.list_containers(name):
            if container["name"] == name:
                print(f"Removing leftover container {name}")
                self.stop_and_remove(container["id"])
