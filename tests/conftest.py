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
Shared fixtures: an in-memory stand-in for the low-level Docker API client.
"""
import threading
from typing import Any, Callable, Dict, List, Optional

import pytest
from docker.errors import ImageNotFound, NotFound


class FakeDockerAPI:
    """
    Records every call and keeps just enough state (images, networks,
    containers, volumes) for the managers to behave as against a daemon.

    ``fail`` maps a method name to an exception raised on every call to it.
    ``probe`` decides the exit code of an exec: ``probe(container) -> int``.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail: Dict[str, Exception] = {}
        self.images_store: Dict[str, Dict[str, Any]] = {}
        self.networks_store: Dict[str, str] = {}
        self.containers_store: Dict[str, Dict[str, Any]] = {}
        self.volumes_store: List[str] = []
        self.build_output: List[Dict[str, Any]] = [{"stream": "Step 1/1 : FROM ubuntu:24.04\n"}]
        self.build_contexts: List[bytes] = []
        self.probe: Callable[[Dict[str, Any]], int] = lambda container: 0
        self._execs: Dict[str, str] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def _record(self, method: str, *args, **kwargs) -> None:
        with self._lock:
            self.calls.append((method, args, kwargs))
        if method in self.fail:
            raise self.fail[method]

    def _next_id(self, prefix: str) -> str:
        with self._lock:
            self._counter += 1
            return f"{prefix}{self._counter:012d}"

    def called(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    # images

    def images(self, name: Optional[str] = None):
        self._record("images", name=name)
        if name is None:
            return list(self.images_store.values())
        if ":" in name:
            return [self.images_store[name]] if name in self.images_store else []
        return [img for tag, img in self.images_store.items() if tag.split(":")[0] == name]

    def build(self, fileobj=None, tag=None, nocache=False, **kwargs):
        self._record("build", tag=tag, nocache=nocache, **kwargs)
        self.build_contexts.append(fileobj.read())
        output = list(self.build_output)
        if not any(chunk.get("error") for chunk in output):
            self.images_store[tag] = {"Id": self._next_id("sha256:"), "RepoTags": [tag]}
        return iter(output)

    def remove_image(self, image, force=False):
        self._record("remove_image", image, force=force)
        if image not in self.images_store:
            raise ImageNotFound(f"No such image: {image}")
        del self.images_store[image]

    # networks

    def networks(self, names=None):
        self._record("networks", names=names)
        result = [{"Name": n, "Id": i} for n, i in self.networks_store.items()]
        if names:
            result = [n for n in result if any(f in n["Name"] for f in names)]
        return result

    def create_network(self, name, driver=None):
        self._record("create_network", name, driver=driver)
        network_id = self._next_id("net")
        self.networks_store[name] = network_id
        return {"Id": network_id}

    def remove_network(self, name):
        self._record("remove_network", name)
        if name not in self.networks_store:
            raise NotFound(f"network {name} not found")
        del self.networks_store[name]

    # volumes

    def create_volume(self, name=None):
        self._record("create_volume", name=name)
        if name not in self.volumes_store:
            self.volumes_store.append(name)
        return {"Name": name}

    def volumes(self, filters=None):
        self._record("volumes", filters=filters)
        wanted = (filters or {}).get("name", "")
        return {"Volumes": [{"Name": v} for v in self.volumes_store if wanted in v]}

    def remove_volume(self, name):
        self._record("remove_volume", name)
        if name not in self.volumes_store:
            raise NotFound(f"volume {name} not found")
        self.volumes_store.remove(name)

    # containers

    def create_host_config(self, **kwargs):
        return kwargs

    def create_endpoint_config(self, **kwargs):
        return kwargs

    def create_networking_config(self, endpoints):
        return {"EndpointsConfig": endpoints}

    def create_container(self, image=None, name=None, **kwargs):
        self._record("create_container", image=image, name=name, **kwargs)
        container_id = self._next_id("c")
        self.containers_store[container_id] = {
            "Id": container_id,
            "Names": [f"/{name}"],
            "Image": image,
            "running": False,
            "options": kwargs,
        }
        return {"Id": container_id}

    def start(self, container):
        self._record("start", container)
        self.containers_store[container]["running"] = True

    def stop(self, container, timeout=None):
        self._record("stop", container, timeout=timeout)
        if container not in self.containers_store:
            raise NotFound(f"No such container: {container}")
        self.containers_store[container]["running"] = False

    def remove_container(self, container, force=False):
        self._record("remove_container", container, force=force)
        if container not in self.containers_store:
            raise NotFound(f"No such container: {container}")
        del self.containers_store[container]

    def containers(self, all=False, filters=None):
        self._record("containers", all=all, filters=filters)
        wanted = (filters or {}).get("name", "")
        return [
            {"Id": c["Id"], "Names": list(c["Names"])}
            for c in self.containers_store.values()
            if wanted in c["Names"][0]
        ]

    def container_named(self, name: str) -> Optional[Dict[str, Any]]:
        for container in self.containers_store.values():
            if container["Names"][0] == f"/{name}":
                return container
        return None

    # exec

    def exec_create(self, container, cmd):
        self._record("exec_create", container, cmd)
        exec_id = self._next_id("exec")
        self._execs[exec_id] = container
        return {"Id": exec_id}

    def exec_start(self, exec_id):
        self._record("exec_start", exec_id)
        return b""

    def exec_inspect(self, exec_id):
        container = self.containers_store.get(self._execs[exec_id], {})
        return {"ExitCode": self.probe(container)}


class FakeExecRunner:
    """Stands in for ``docker exec``; returns canned results and records commands."""

    def __init__(self, exit_code: int = 0, silent_ok: bool = True):
        self.exit_code = exit_code
        self.silent_ok = silent_ok
        self.commands: List[tuple] = []

    def run_interactive(self, container_id, command):
        self.commands.append(("interactive", container_id, list(command)))
        return self.exit_code

    def run_streaming(self, container_id, command):
        self.commands.append(("streaming", container_id, list(command)))
        return self.exit_code

    def run_silent(self, container_id, shell_command):
        self.commands.append(("silent", container_id, shell_command))
        return self.silent_ok


@pytest.fixture
def api():
    return FakeDockerAPI()


@pytest.fixture
def exec_runner():
    return FakeExecRunner()


@pytest.fixture
def sleeps() -> List[float]:
    """Pass ``sleeps.append`` as a sleep function to record delays without waiting."""
    return []
