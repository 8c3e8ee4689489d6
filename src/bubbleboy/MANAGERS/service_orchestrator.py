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
Launching of auxiliary service containers (databases, caches) on the session
network, one at a time, each waited on until ready.
"""
from typing import Dict, List

from docker.errors import DockerException

from ..MODELS.resources import ResourceRole
from ..MODELS.service_descriptor import ReadinessPolicy, RunningService, ServiceDescriptor
from ..UTILS.naming import service_container_name
from ..errors import BubbleBoyError, ServiceError
from .container_manager import ContainerManager, ContainerOptions
from .health_monitor import ReadinessProber
from .volume_manager import VolumeManager


class ServiceLauncher:
    """
    Starts service containers in the order given and waits for each to pass
    its readiness probe before starting the next.
    """
    def __init__(self,
                 container_manager: ContainerManager,
                 volume_manager: VolumeManager,
                 prober: ReadinessProber,
                 policy: ReadinessPolicy = ReadinessPolicy()):
        """
        Initializes the launcher.

        :param container_manager: Creates service containers and tracks them for cleanup.
        :param volume_manager: Creates the named data volumes.
        :param prober: Waits for readiness.
        :param policy: Readiness attempt budget applied to every service.
        """
        self.container_manager = container_manager
        self.volume_manager = volume_manager
        self.prober = prober
        self.policy = policy

    def start_services(self,
                       descriptors: List[ServiceDescriptor],
                       network_name: str,
                       project_name: str) -> List[RunningService]:
        """
        Starts every service.

        A service container is tracked for cleanup as soon as it is created.
        On failure the services already started stay tracked and no further
        service is started.

        :param descriptors: Services to start, in order.
        :param network_name: Network every service joins, with its name as alias.
        :param project_name: Project the container names derive from.
        :return: The running services, in start order.
        :raises ServiceError: Naming the service that failed.
        """
        running: List[RunningService] = []
        for descriptor in descriptors:
            running.append(self._start_one(descriptor, network_name, project_name))
        return running

    def _start_one(self, descriptor: ServiceDescriptor, network_name: str, project_name: str) -> RunningService:
        name = descriptor.name
        container_name = service_container_name(project_name, name)
        print(f"[{name}] Starting service container {container_name}...")

        try:
            if descriptor.volume is not None:
                self.volume_manager.ensure_volume(descriptor.volume.name)

            self.container_manager.remove_existing(container_name)
            container_id = self.container_manager.create_and_start(
                ContainerOptions(
                    image=descriptor.image,
                    name=container_name,
                    environment=descriptor.container_env,
                    volumes=[descriptor.volume] if descriptor.volume else [],
                    network=network_name,
                    aliases=[name],
                ),
                role=ResourceRole.SERVICE,
            )
        except ServiceError:
            raise
        except BubbleBoyError as e:
            raise ServiceError(name, e.message) from e
        except DockerException as e:
            raise ServiceError(name, str(e)) from e

        if descriptor.readiness_command:
            print(f"[{name}] Waiting for readiness...")
            health = self.prober.wait_ready(container_id, descriptor.readiness_command, self.policy, name=name)
            print(f"[{name}] Ready after {health.attempts} attempt(s)")
        else:
            print(f"[{name}] Ready")

        return RunningService(name=name, container_id=container_id)

    @staticmethod
    def aggregate_environment(descriptors: List[ServiceDescriptor]) -> List[str]:
        """
        Collects the variables every service exposes to the primary container.

        A key declared by more than one service keeps its first position and
        takes the value of the last service declaring it.

        :return: ``KEY=VALUE`` strings.
        """
        merged: Dict[str, str] = {}
        for descriptor in descriptors:
            for key, value in descriptor.primary_env:
                merged[key] = value
        return [f"{key}={value}" for key, value in merged.items()]
