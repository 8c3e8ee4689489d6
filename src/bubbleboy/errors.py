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
Typed exceptions for bubbleboy.

Every fatal error names the lifecycle phase that failed so the CLI can
report "build", "network", "service \"mysql\"" or "primary container"
together with the underlying Docker error text.
"""
from typing import Any, Dict, Optional


class BubbleBoyError(Exception):
    """
    Base exception for all bubbleboy errors.

    Attributes:
        message: Human-readable error description.
        phase: Lifecycle phase that failed.
        details: Additional context as key-value pairs.
    """

    phase = "bubble-boy"

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        if phase is not None:
            self.phase = phase
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.phase}: {self.message}"


class ConfigError(BubbleBoyError):
    """Invalid configuration file, flag or runtime version."""

    phase = "config"


class BuildError(BubbleBoyError):
    """Build context assembly or remote image build failed."""

    phase = "build"


class NetworkError(BubbleBoyError):
    """Session network could not be created or removed."""

    phase = "network"


class ServiceError(BubbleBoyError):
    """A service container failed to start."""

    def __init__(self, service: str, message: str, **kwargs: Any) -> None:
        self.service = service
        kwargs.setdefault("phase", f'service "{service}"')
        super().__init__(message, **kwargs)


class ReadinessTimeout(ServiceError):
    """A readiness probe never succeeded within its attempt budget."""

    def __init__(self, service: str, container_id: str, attempts: int, last_output: str = "") -> None:
        self.container_id = container_id
        self.attempts = attempts
        self.last_output = last_output
        message = f"container {container_id} did not become ready after {attempts} attempts"
        if last_output.strip():
            message = f"{message} (last probe output: {last_output.strip()})"
        super().__init__(
            service,
            message,
            details={"container_id": container_id, "attempts": attempts, "last_output": last_output},
        )


class ContainerError(BubbleBoyError):
    """The primary container could not be created, started or removed."""

    phase = "primary container"
