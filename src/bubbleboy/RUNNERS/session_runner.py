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
End-to-end session orchestration: build the image, bring up the network,
services and dev container, hand the terminal to the user, and tear it all
down afterwards.
"""
import os
import time
from typing import Any, Callable, Dict, List, Optional

import docker
from docker.errors import DockerException
from pydantic import BaseModel

from ..BUILDERS.image_builder import BuildResult, ImageBuilder
from ..BUILDERS.template_renderer import TemplateRenderer
from ..MANAGERS.cleanup_coordinator import CleanupCoordinator
from ..MANAGERS.container_manager import ContainerManager, ContainerOptions, host_user
from ..MANAGERS.environment_manager import EnvironmentManager
from ..MANAGERS.health_monitor import ReadinessProber
from ..MANAGERS.network_manager import NetworkManager
from ..MANAGERS.service_orchestrator import ServiceLauncher
from ..MANAGERS.stale_reconciler import StaleResourceReconciler
from ..MANAGERS.volume_manager import VolumeManager
from ..MODELS.build_spec import BuildSpec
from ..MODELS.config import Config
from ..MODELS.resources import ManagedResource
from ..MODELS.service_descriptor import ReadinessPolicy
from ..REGISTRY.build_cache import BuildCache
from ..SERVICES import collect_descriptors
from ..UTILS import naming
from ..UTILS.credentials import ENV_VAR_NAME, oauth_token_source, resolve_oauth_token
from ..UTILS.shell import collect_dotfile_mounts, resolve_shell
from ..errors import BubbleBoyError
from .hook_runner import HookRunner
from .signal_watcher import SignalWatcher

CLAUDE_COMMAND = ["claude", "--permission-mode", "bypassPermissions"]
CHIEF_COMMAND = ["chief"]
MASKED = "********"


def connect() -> Any:
    """
    Returns a low-level Docker API client configured from the environment.
    """
    try:
        return docker.from_env().api
    except DockerException as e:
        raise BubbleBoyError(f"cannot connect to Docker: {e}", phase="docker") from e


class SessionCommand(BaseModel):
    """
    What to run in the dev container once it is up.
    """
    kind: str
    args: List[str] = []

    @classmethod
    def shell(cls) -> "SessionCommand":
        return cls(kind="shell")

    @classmethod
    def claude(cls, args: Optional[List[str]] = None) -> "SessionCommand":
        return cls(kind="claude", args=list(args or []))

    @classmethod
    def chief(cls, args: Optional[List[str]] = None) -> "SessionCommand":
        return cls(kind="chief", args=list(args or []))

    @classmethod
    def exec(cls, args: List[str]) -> "SessionCommand":
        return cls(kind="exec", args=list(args))

    @property
    def interactive(self) -> bool:
        return self.kind != "exec"

    def argv(self, shell: str) -> List[str]:
        if self.kind == "shell":
            return [shell]
        if self.kind == "claude":
            return CLAUDE_COMMAND + self.args
        if self.kind == "chief":
            return CHIEF_COMMAND + self.args
        return list(self.args)


class ServicePlan(BaseModel):
    name: str
    container: str
    image: str
    volume: Optional[str] = None


class SessionPlan(BaseModel):
    """
    Everything a run would do, computed without talking to Docker.
    """
    project: str
    image: str
    fingerprint: str
    rebuild: bool
    container: str
    network: str
    command: List[str]
    credentials: Optional[str] = None
    services: List[ServicePlan] = []
    volumes: List[str] = []
    environment: Dict[str, str] = {}
    mounts: List[str] = []
    hooks: Dict[str, List[str]] = {}


class CleanReport(BaseModel):
    """
    Resources removed by ``clean``, and warnings for those that were not.
    """
    containers: List[str] = []
    images: List[str] = []
    networks: List[str] = []
    volumes: List[str] = []
    warnings: List[str] = []


class SessionRunner:
    """
    Composes the builders and managers into the session lifecycle.
    """

    def __init__(self,
                 config: Config,
                 api: Any = None,
                 project_dir: Optional[str] = None,
                 policy: ReadinessPolicy = ReadinessPolicy(),
                 sleep: Callable[[float], None] = time.sleep,
                 token_resolver: Callable[[], Optional[str]] = resolve_oauth_token,
                 token_source: Callable[[], Optional[str]] = oauth_token_source,
                 on_progress: Optional[Callable[[str], None]] = None,
                 handle_signals: bool = True):
        """
        :param config: The merged configuration.
        :param api: Low-level Docker API client; connected from the environment on first use.
        :param project_dir: Directory mounted at ``/workspace``. Defaults to the cwd.
        :param policy: Readiness budget for service containers.
        :param sleep: Sleep function used between readiness probes.
        :param token_resolver: Returns the OAuth token, or None.
        :param token_source: Names where the token would come from, without reading it.
        :param on_progress: Receives image build output lines.
        :param handle_signals: Install SIGINT/SIGTERM handlers during ``run``.
        """
        self.config = config
        self._api = api
        self.project_dir = os.path.abspath(project_dir or os.getcwd())
        self.policy = policy
        self.sleep = sleep
        self.token_resolver = token_resolver
        self.token_source = token_source
        self.on_progress = on_progress
        self.handle_signals = handle_signals
        self.renderer = TemplateRenderer()

        self.project = naming.project_name(self.project_dir)
        self.container_name = config.container.name or naming.container_name(self.project)
        self.network_name = config.container.network or naming.network_name(self.project)
        self.shell = resolve_shell(config.container.shell)

    @property
    def api(self) -> Any:
        if self._api is None:
            self._api = connect()
        return self._api

    def _mounts(self) -> List[str]:
        if self.config.shell.mount_configs:
            return collect_dotfile_mounts()
        return []

    def build(self, force_rebuild: bool = False, command: Optional[SessionCommand] = None) -> BuildResult:
        """Renders the Dockerfile and builds it, or reuses the cached image."""
        spec = self._render(command)
        builder = ImageBuilder(self.api, on_progress=self.on_progress)
        return builder.build(spec, force_rebuild=force_rebuild)

    def _render(self, command: Optional[SessionCommand] = None) -> BuildSpec:
        return self.renderer.render(self.config, include_chief=command is not None and command.kind == "chief")

    def run(self, command: SessionCommand, force_rebuild: bool = False) -> int:
        """
        Runs one session and returns the command's exit status.

        Leftovers of a previous run are reconciled before the image is built.
        Whatever happens after the first resource is created, every tracked
        resource is removed before this returns or raises.

        :raises BubbleBoyError: On any fatal failure, after teardown.
        """
        networks = NetworkManager(self.api)
        volumes = VolumeManager(self.api)
        containers = ContainerManager(self.api)
        coordinator = CleanupCoordinator(containers.stop_and_remove, networks.remove_network)
        containers.coordinator = coordinator

        StaleResourceReconciler(containers, networks).reconcile(naming.project_prefix(self.project))
        build = self.build(force_rebuild, command)

        launcher = ServiceLauncher(containers, volumes, ReadinessProber(self.api, sleep=self.sleep), self.policy)
        env_manager = EnvironmentManager(self.project_dir)

        watcher = SignalWatcher(coordinator) if self.handle_signals else None
        if watcher is not None:
            watcher.install()
        try:
            network_id = networks.ensure_network(self.network_name)
            coordinator.track(ManagedResource.network(self.network_name, network_id))

            descriptors = collect_descriptors(self.config, self.project)
            launcher.start_services(descriptors, self.network_name, self.project)

            environment = env_manager.build_primary_env(
                launcher.aggregate_environment(descriptors),
                self.config.container.env_files,
                self.token_resolver(),
            )

            containers.remove_existing(self.container_name)
            container_id = containers.create_and_start(ContainerOptions(
                image=build.tag,
                name=self.container_name,
                environment=environment,
                user=host_user(),
                project_dir=self.project_dir,
                binds=self._mounts(),
                network=self.network_name,
                aliases=[self.container_name],
            ))

            hooks = HookRunner(containers, container_id, self.config.hooks)
            hooks.run_post_start()
            try:
                argv = command.argv(self.shell)
                if command.interactive:
                    exit_code = containers.attach_interactive(container_id, argv)
                else:
                    exit_code = containers.exec_streaming(container_id, argv)
            finally:
                hooks.run_pre_stop()
        finally:
            removed = coordinator.cleanup()
            if removed:
                print(f"Cleaned up {len(removed)} resource(s)")
            if watcher is not None:
                watcher.uninstall()

        return exit_code

    def plan(self, command: Optional[SessionCommand] = None, force_rebuild: bool = False) -> SessionPlan:
        """
        Describes what ``run`` would do. Makes no Docker calls and never reads
        the secret: ``credentials`` names its source and the environment shows
        a masked placeholder when one is available.
        """
        command = command or SessionCommand.shell()
        spec = self._render(command)
        fingerprint = BuildCache.fingerprint(spec)
        descriptors = collect_descriptors(self.config, self.project)

        service_env = ServiceLauncher.aggregate_environment(descriptors)
        source = self.token_source()
        environment = {}
        for entry in EnvironmentManager(self.project_dir).build_primary_env(
                service_env, self.config.container.env_files, MASKED if source else None):
            key, _, value = entry.partition("=")
            environment[key] = MASKED if key == ENV_VAR_NAME else value

        return SessionPlan(
            project=self.project,
            image=BuildCache.tag_for(fingerprint),
            fingerprint=fingerprint,
            rebuild=force_rebuild,
            container=self.container_name,
            network=self.network_name,
            command=command.argv(self.shell),
            credentials=source,
            services=[
                ServicePlan(
                    name=d.name,
                    container=naming.service_container_name(self.project, d.name),
                    image=d.image,
                    volume=d.volume.spec() if d.volume else None,
                )
                for d in descriptors
            ],
            volumes=[d.volume.name for d in descriptors if d.volume],
            environment=environment,
            mounts=[f"{self.project_dir}:/workspace"] + self._mounts(),
            hooks={
                "post_start": list(self.config.hooks.post_start),
                "pre_stop": list(self.config.hooks.pre_stop),
            },
        )

    def clean(self, volumes: bool = False) -> CleanReport:
        """
        Removes every bubble-boy container, image and network, and
        optionally every bubble-boy volume. Failures are warnings.
        """
        report = CleanReport()
        containers = ContainerManager(self.api)
        networks = NetworkManager(self.api)

        stale = StaleResourceReconciler(containers, networks).reconcile(naming.PREFIX)
        report.containers = stale.containers
        report.networks = stale.networks
        report.warnings.extend(stale.warnings)

        cache = BuildCache(self.api)
        try:
            tags = cache.list_tags()
        except BubbleBoyError as e:
            report.warnings.append(f"could not list images: {e.message}")
            tags = []
        for tag in tags:
            print(f"Removing image {tag}")
            try:
                cache.remove(tag)
                report.images.append(tag)
            except BubbleBoyError as e:
                print(f"Warning: {e.message}")
                report.warnings.append(e.message)

        if volumes:
            volume_manager = VolumeManager(self.api)
            try:
                names = volume_manager.list_volumes(naming.PREFIX)
            except DockerException as e:
                print(f"Warning: could not list volumes: {e}")
                report.warnings.append(f"could not list volumes: {e}")
                names = []
            for name in names:
                print(f"Removing volume {name}")
                if volume_manager.remove_volume(name):
                    report.volumes.append(name)

        return report
