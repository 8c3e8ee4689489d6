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
Removal of containers and networks left behind by a previous session of the
same project that never got to clean up (crash, kill -9, host reboot).
"""
from typing import List

from pydantic import BaseModel

from ..errors import BubbleBoyError
from .container_manager import ContainerManager
from .network_manager import NetworkManager


class ReconcileReport(BaseModel):
    """
    Names of resources removed, and warnings for those that could not be.
    """
    containers: List[str] = []
    networks: List[str] = []
    warnings: List[str] = []


class StaleResourceReconciler:
    """
    Force-removes every container and network matching a project prefix,
    containers first so the networks are free to go.
    """
    def __init__(self, container_manager: ContainerManager, network_manager: NetworkManager):
        self.container_manager = container_manager
        self.network_manager = network_manager

    def _warn(self, report: ReconcileReport, message: str) -> None:
        print(f"Warning: {message}")
        report.warnings.append(message)

    def reconcile(self, project_prefix: str) -> ReconcileReport:
        """
        Removes stale resources. Never raises: every failure becomes a warning.

        :param project_prefix: e.g. ``bubble-boy-myproject``.
        :return: What was removed and what went wrong.
        """
        report = ReconcileReport()

        try:
            containers = self.container_manager.list_containers(project_prefix)
        except BubbleBoyError as e:
            self._warn(report, f"could not list stale containers: {e.message}")
            containers = []

        for container in containers:
            print(f"Removing stale container {container['name']}")
            try:
                self.container_manager.stop_and_remove(container["id"])
                report.containers.append(container["name"])
            except BubbleBoyError as e:
                self._warn(report, f"could not remove stale container {container['name']}: {e.message}")

        try:
            networks = self.network_manager.list_networks(project_prefix)
        except BubbleBoyError as e:
            self._warn(report, f"could not list stale networks: {e.message}")
            networks = []

        for network in networks:
            print(f"Removing stale network {network}")
            try:
                self.network_manager.remove_network(network)
                report.networks.append(network)
            except BubbleBoyError as e:
                self._warn(report, f"could not remove stale network {network}: {e.message}")

        return report
