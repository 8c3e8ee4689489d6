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
Unit tests for readiness probing.
"""
import time

import pytest
from docker.errors import DockerException

from bubbleboy.MANAGERS.health_monitor import HealthStatus, ReadinessProber
from bubbleboy.MODELS.service_descriptor import ReadinessPolicy
from bubbleboy.errors import ReadinessTimeout, ServiceError


@pytest.fixture
def container_id(api):
    return api.create_container(image="mysql:8.0", name="bubble-boy-app-mysql")["Id"]


def test_ready_on_first_attempt(api, container_id, sleeps):
    prober = ReadinessProber(api, sleep=sleeps.append)
    health = prober.wait_ready(container_id, ["mysqladmin", "ping"], ReadinessPolicy(max_attempts=5, delay=2.0), name="mysql")
    assert len(api.called("exec_create")) == 1
    assert sleeps == []
    assert health.status == HealthStatus.HEALTHY
    assert health.attempts == 1


def test_ready_after_some_failures(api, container_id, sleeps):
    results = iter([1, 1, 0])
    api.probe = lambda container: next(results)
    prober = ReadinessProber(api, sleep=sleeps.append)
    health = prober.wait_ready(container_id, ["pg_isready"], ReadinessPolicy(max_attempts=5, delay=0.5), name="postgres")
    assert len(api.called("exec_create")) == 3
    assert sleeps == [0.5, 0.5]
    assert health.attempts == 3


def test_exhaustion_after_exactly_max_attempts(api, container_id, sleeps):
    api.probe = lambda container: 1
    prober = ReadinessProber(api, sleep=sleeps.append)
    with pytest.raises(ReadinessTimeout) as exc_info:
        prober.wait_ready(container_id, ["redis-cli", "ping"], ReadinessPolicy(max_attempts=4, delay=1.5), name="redis")

    assert len(api.called("exec_create")) == 4
    # no sleep after the last attempt
    assert sleeps == [1.5, 1.5, 1.5]
    error = exc_info.value
    assert isinstance(error, ServiceError)
    assert error.container_id == container_id
    assert error.attempts == 4
    assert container_id in str(error)
    assert str(error).startswith('service "redis": ')
    assert "last probe output" not in str(error)


def test_elapsed_time_covers_all_delays(api, container_id):
    api.probe = lambda container: 1
    prober = ReadinessProber(api)
    policy = ReadinessPolicy(max_attempts=3, delay=0.05)
    start = time.monotonic()
    with pytest.raises(ReadinessTimeout):
        prober.wait_ready(container_id, ["true"], policy)
    assert time.monotonic() - start >= (policy.max_attempts - 1) * policy.delay


def test_docker_errors_count_as_failed_attempts(api, container_id, sleeps):
    api.fail["exec_create"] = DockerException("container is restarting")
    prober = ReadinessProber(api, sleep=sleeps.append)
    with pytest.raises(ReadinessTimeout) as exc_info:
        prober.wait_ready(container_id, ["true"], ReadinessPolicy(max_attempts=2, delay=0.1), name="mysql")
    error = exc_info.value
    assert "restarting" in error.last_output
    assert "last probe output: container is restarting" in str(error)


def test_default_policy():
    policy = ReadinessPolicy()
    assert policy.max_attempts == 30
    assert policy.delay == 2.0
