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
Readiness probing for service containers: run a check command inside the
container at a fixed interval until it succeeds or the attempt budget runs out.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from docker.errors import DockerException
from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ..MODELS.service_descriptor import ReadinessPolicy
from ..errors import ReadinessTimeout


class HealthStatus(str, Enum):
    """Readiness status of a service container."""

    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ServiceHealth:
    """Readiness information for a service container."""

    status: HealthStatus = HealthStatus.STARTING
    attempts: int = 0
    last_output: str = ""


class ReadinessProber:
    """
    Waits for service containers to accept connections.

    Each attempt runs the probe command inside the container through the
    Docker exec API; exit status 0 means ready.
    """

    def __init__(self, api: Any, sleep: Callable[[float], None] = time.sleep):
        """
        :param api: Low-level Docker API client.
        :param sleep: Sleep function used between attempts.
        """
        self.api = api
        self.sleep = sleep

    def probe_once(self, container_id: str, probe_command: List[str], health: Optional[ServiceHealth] = None) -> bool:
        """
        Runs the probe command once.

        Docker errors count as a failed attempt rather than aborting the wait,
        since a container that is still booting may reject exec calls.
        """
        try:
            exec_id = self.api.exec_create(container_id, probe_command)["Id"]
            output = self.api.exec_start(exec_id)
            exit_code = self.api.exec_inspect(exec_id).get("ExitCode")
        except DockerException as e:
            if health is not None:
                health.last_output = str(e)
            return False

        if health is not None:
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            health.last_output = (output or "")[:500]
        return exit_code == 0

    def wait_ready(
        self,
        container_id: str,
        probe_command: List[str],
        policy: ReadinessPolicy = ReadinessPolicy(),
        name: Optional[str] = None,
    ) -> ServiceHealth:
        """
        Blocks until the probe succeeds.

        :param container_id: Container to probe.
        :param probe_command: Command run inside the container.
        :param policy: Attempt budget and fixed delay between attempts.
        :param name: Service name used in errors.
        :return: The final health record of the container.
        :raises ReadinessTimeout: After ``policy.max_attempts`` failed probes.
        """
        name = name or container_id
        health = ServiceHealth()

        def attempt() -> bool:
            health.attempts += 1
            return self.probe_once(container_id, probe_command, health)

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_fixed(policy.delay),
            retry=retry_if_result(lambda ready: not ready),
            sleep=self.sleep,
        )
        try:
            retrying(attempt)
        except RetryError as e:
            health.status = HealthStatus.UNHEALTHY
            raise ReadinessTimeout(name, container_id, health.attempts, health.last_output) from e

        health.status = HealthStatus.HEALTHY
        return health
