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
Tracks every Docker resource created during a session and tears them all down
exactly once, whether the session ends normally, fails, or is interrupted.
"""
import threading
from typing import Callable, List

from ..MODELS.resources import ManagedResource, ResourceKind, ResourceRole


class CleanupCoordinator:
    """
    Shared registry of session resources.

    ``track`` may be called from the main flow while ``cleanup`` runs from a
    signal watcher thread; both go through the same lock, so a resource is
    either removed by the running cleanup or not tracked at all.

    Teardown order: the primary container first, then service containers in
    reverse start order, then the network.
    """

    def __init__(
        self,
        remove_container: Callable[[str], None],
        remove_network: Callable[[str], None],
    ):
        """
        :param remove_container: Stops and removes a container by id or name.
        :param remove_network: Removes a network by name.
        """
        self._remove_container = remove_container
        self._remove_network = remove_network
        self._lock = threading.Lock()
        self._resources: List[ManagedResource] = []

    def track(self, resource: ManagedResource) -> None:
        with self._lock:
            self._resources.append(resource)

    def state(self) -> List[ManagedResource]:
        """Snapshot of currently tracked resources, in tracking order."""
        with self._lock:
            return list(self._resources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    @staticmethod
    def teardown_order(resources: List[ManagedResource]) -> List[ManagedResource]:
        primary = [r for r in resources if r.role == ResourceRole.PRIMARY]
        services = [r for r in resources if r.role == ResourceRole.SERVICE]
        networks = [r for r in resources if r.kind == ResourceKind.NETWORK]
        return primary + list(reversed(services)) + networks

    def cleanup(self) -> List[ManagedResource]:
        """
        Removes every tracked resource and empties the registry.

        Never raises: individual removal failures are reported as warnings and
        the remaining resources are still attempted. A second call (or a
        concurrent one) finds the registry empty and does nothing.

        :return: The resources removal was attempted for, in teardown order.
        """
        with self._lock:
            pending = self.teardown_order(self._resources)
            self._resources = []

            for resource in pending:
                try:
                    if resource.kind == ResourceKind.CONTAINER:
                        self._remove_container(resource.ref)
                    else:
                        self._remove_network(resource.name)
                except Exception as e:
                    print(f"Warning: failed to remove {resource.kind.value} {resource.name}: {e}")

        return pending
