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
Unit tests for the network manager.
"""
import pytest
from docker.errors import DockerException

from bubbleboy.MANAGERS.network_manager import NetworkManager
from bubbleboy.errors import NetworkError


class TestNetworkManager:
    """Tests for NetworkManager."""

    def test_create_network(self, api):
        mgr = NetworkManager(api)
        network_id = mgr.ensure_network("bubble-boy-app")
        assert api.networks_store["bubble-boy-app"] == network_id
        assert api.called("create_network")[0][2]["driver"] == "bridge"

    def test_reuse_existing_network(self, api):
        mgr = NetworkManager(api)
        first = mgr.ensure_network("bubble-boy-app")
        second = mgr.ensure_network("bubble-boy-app")
        assert first == second
        assert len(api.called("create_network")) == 1

    def test_substring_match_is_not_reused(self, api):
        api.networks_store["bubble-boy-app-old"] = "net-old"
        mgr = NetworkManager(api)
        assert mgr.network_exists("bubble-boy-app") is False
        mgr.ensure_network("bubble-boy-app")
        assert "bubble-boy-app" in api.networks_store

    def test_create_failure(self, api):
        api.fail["create_network"] = DockerException("pool overlaps")
        with pytest.raises(NetworkError) as exc_info:
            NetworkManager(api).ensure_network("bubble-boy-app")
        assert str(exc_info.value).startswith("network: ")
        assert "pool overlaps" in str(exc_info.value)

    def test_remove_network(self, api):
        mgr = NetworkManager(api)
        mgr.ensure_network("bubble-boy-app")
        mgr.remove_network("bubble-boy-app")
        assert "bubble-boy-app" not in api.networks_store

    def test_remove_missing_network_succeeds(self, api):
        NetworkManager(api).remove_network("bubble-boy-gone")

    def test_remove_failure(self, api):
        api.fail["remove_network"] = DockerException("has active endpoints")
        with pytest.raises(NetworkError):
            NetworkManager(api).remove_network("bubble-boy-app")

    def test_list_networks_by_prefix(self, api):
        for name in ("bubble-boy-x", "bubble-boy-x-extra", "bubble-boy-xray", "bridge"):
            api.networks_store[name] = name
        assert NetworkManager(api).list_networks("bubble-boy-x") == ["bubble-boy-x", "bubble-boy-x-extra"]
