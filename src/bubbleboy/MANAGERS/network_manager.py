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
Network management for sessions: one user-defined bridge network per project,
so service containers are reachable from the primary container by alias.
"""
from typing import Any, Dict, List, Optional

from docker.errors import DockerException, NotFound

from ..UTILS.naming import matches_stale_prefix
from ..errors import NetworkError


class NetworkManager:
    """
    Creates, looks up and removes Docker bridge networks.
    """
    def __init__(self, api: Any):
        """
        Initializes the network manager.

        :param api: Low-level Docker API client.
        """
        self.api = api

    def find_network(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Returns the network named exactly ``name``, or None.

        The Docker name filter matches substrings, so results are filtered
        again by exact name.
        """
        try:
            networks = self.api.networks(names=[name])
        except DockerException as e:
            raise NetworkError(f"failed to list networks: {e}") from e
        for network in networks or []:
            if network.get("Name") == name:
                return network
        return None

    def network_exists(self, name: str) -> bool:
        return self.find_network(name) is not None

    def ensure_network(self, name: str) -> str:
        """
        Creates the bridge network if it does not exist yet.

        :param name: Network name.
        :return: The network id.
        :raises NetworkError: If the network cannot be listed or created.
        """
        existing = self.find_network(name)
        if existing is not None:
            print(f"Reusing network {name}")
            return existing.get("Id", name)

        print(f"Creating network {name}")
        try:
            created = self.api.create_network(name, driver="bridge")
        except DockerException as e:
            raise NetworkError(f"failed to create network {name}: {e}") from e
        return (created or {}).get("Id", name)

    def remove_network(self, name: str) -> None:
        """
        Removes a network. A network that is already gone counts as removed.

        :raises NetworkError: If Docker refuses the removal.
        """
        try:
            self.api.remove_network(name)
        except NotFound:
            return
        except DockerException as e:
            raise NetworkError(f"failed to remove network {name}: {e}") from e

    def list_networks(self, prefix: str) -> List[str]:
        """
        Names of all networks that belong to the given project prefix.
        """
        try:
            networks = self.api.networks()
        except DockerException as e:
            raise NetworkError(f"failed to list networks: {e}") from e
        return [n["Name"] for n in networks or [] if matches_stale_prefix(n.get("Name", ""), prefix)]
