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
Unit tests for the service launcher.
"""
import pytest
from docker.errors import DockerException

from bubbleboy.MANAGERS.cleanup_coordinator import CleanupCoordinator
from bubbleboy.MANAGERS.container_manager import ContainerManager
from bubbleboy.MANAGERS.health_monitor import ReadinessProber
from bubbleboy.MANAGERS.service_orchestrator import ServiceLauncher
from bubbleboy.MANAGERS.volume_manager import VolumeManager
from bubbleboy.MODELS.config import MysqlConfig, PostgresConfig
from bubbleboy.MODELS.service_descriptor import ReadinessPolicy
from bubbleboy.SERVICES import MysqlService, PostgresService, RedisService
from bubbleboy.errors import ReadinessTimeout, ServiceError


@pytest.fixture
def coordinator():
    return CleanupCoordinator(lambda ref: None, lambda name: None)


@pytest.fixture
def launcher(api, coordinator, exec_runner, sleeps):
    containers = ContainerManager(api, coordinator, runner=exec_runner)
    return ServiceLauncher(
        containers,
        VolumeManager(api),
        ReadinessProber(api, sleep=sleeps.append),
        ReadinessPolicy(max_attempts=3, delay=1.0),
    )


def descriptors():
    return [
        MysqlService(MysqlConfig(), "app").describe(),
        PostgresService(PostgresConfig(), "app").describe(),
        RedisService("app").describe(),
    ]


def test_start_services_in_order(launcher, api, coordinator):
    running = launcher.start_services(descriptors(), "bubble-boy-app", "app")
    assert [s.name for s in running] == ["mysql", "postgres", "redis"]
    names = [c[2]["name"] for c in api.called("create_container")]
    assert names == ["bubble-boy-app-mysql", "bubble-boy-app-postgres", "bubble-boy-app-redis"]
    assert [r.name for r in coordinator.state()] == names
    assert api.volumes_store == ["bubble-boy-app-mysql-data", "bubble-boy-app-postgres-data"]


def test_service_joins_network_with_alias(launcher, api):
    running = launcher.start_services([RedisService("app").describe()], "bubble-boy-app", "app")
    options = api.containers_store[running[0].container_id]["options"]
    assert options["networking_config"]["EndpointsConfig"]["bubble-boy-app"]["aliases"] == ["redis"]


def test_readiness_failure_stops_launch_and_keeps_tracking(launcher, api, coordinator):
    api.probe = lambda container: 1 if container["Image"].startswith("postgres") else 0
    with pytest.raises(ReadinessTimeout) as exc_info:
        launcher.start_services(descriptors(), "bubble-boy-app", "app")
    assert exc_info.value.service == "postgres"
    assert [r.name for r in coordinator.state()] == ["bubble-boy-app-mysql", "bubble-boy-app-postgres"]
    assert api.container_named("bubble-boy-app-redis") is None


def test_create_failure_names_the_service(launcher, api, coordinator):
    api.fail["create_container"] = DockerException("manifest for mysql:9.9 not found")
    with pytest.raises(ServiceError) as exc_info:
        launcher.start_services(descriptors(), "bubble-boy-app", "app")
    assert str(exc_info.value).startswith('service "mysql": ')
    assert "manifest for mysql:9.9 not found" in str(exc_info.value)
    assert len(coordinator) == 0


def test_volume_failure_names_the_service(launcher, api):
    api.fail["create_volume"] = DockerException("no space left on device")
    with pytest.raises(ServiceError) as exc_info:
        launcher.start_services(descriptors(), "bubble-boy-app", "app")
    assert exc_info.value.service == "mysql"


def test_leftover_service_container_is_replaced(launcher, api):
    old = api.create_container(image="redis:alpine", name="bubble-boy-app-redis")["Id"]
    launcher.start_services([RedisService("app").describe()], "bubble-boy-app", "app")
    assert old not in api.containers_store


class TestAggregateEnvironment:
    def test_later_service_wins_on_duplicate_keys(self):
        env = ServiceLauncher.aggregate_environment([
            MysqlService(MysqlConfig(), "app").describe(),
            PostgresService(PostgresConfig(), "app").describe(),
        ])
        assert "DB_HOST=postgres" in env
        assert "DB_HOST=mysql" not in env
        assert env[0] == "DB_HOST=postgres"
        assert len([e for e in env if e.startswith("DB_HOST=")]) == 1

    def test_distinct_keys_are_concatenated(self):
        env = ServiceLauncher.aggregate_environment([
            MysqlService(MysqlConfig(), "app").describe(),
            RedisService("app").describe(),
        ])
        assert env == [
            "DB_HOST=mysql",
            "DB_PORT=3306",
            "DB_DATABASE=app",
            "DB_USERNAME=root",
            "DB_PASSWORD=password",
            "REDIS_HOST=redis",
            "REDIS_PORT=6379",
        ]

    def test_no_services(self):
        assert ServiceLauncher.aggregate_environment([]) == []
