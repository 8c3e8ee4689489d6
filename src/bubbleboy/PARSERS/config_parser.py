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
Parsers for bubble-boy YAML configuration files, and the layering of
defaults, global config, project config and command-line flags.
"""
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..MODELS.config import Config, MysqlConfig, PostgresConfig
from ..UTILS.string_interpolation import EnvironmentInterpolator
from ..errors import ConfigError

PROJECT_CONFIG_FILE = ".bubble-boy.yml"


def global_config_path() -> str:
    """
    ``$XDG_CONFIG_HOME/bubble-boy/config.yml``, defaulting to ``~/.config``.
    """
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "bubble-boy", "config.yml")


class ConfigParser:
    """
    Parser for bubble-boy configuration files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, config_path: str) -> Optional[Config]:
        """
        Parses a config file from a path.

        :param config_path: Path to the config file.
        :return: Parsed configuration, or None if the file does not exist.
        :raises ConfigError: If the file cannot be read or is invalid.
        """
        if not os.path.exists(config_path):
            return None
        try:
            with open(config_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"cannot read {config_path}: {e}") from e
        return self.parse_from_string(content, source=config_path)

    def parse_from_string(self, content: str, source: str = "<string>") -> Config:
        """
        Parses config from a string.

        :param content: YAML content.
        :param source: Name used in error messages.
        :return: Parsed configuration.
        :raises ConfigError: If the YAML or the schema is invalid.
        """
        try:
            content = EnvironmentInterpolator.interpolate(content, self.context)
        except KeyError as e:
            raise ConfigError(f"{source}: environment variable {e.args[0]} is not set") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"{source}: invalid YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{source}: expected a mapping at the top level")

        try:
            return Config.model_validate(self._normalize(data))
        except ValidationError as e:
            raise ConfigError(f"{source}: {e}") from e

    @staticmethod
    def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Accepts the shorthand forms ``mysql: true`` and ``postgres: "15"``.
        """
        services = data.get("services")
        if not isinstance(services, dict):
            return data

        services = dict(services)
        for name in ("mysql", "postgres"):
            value = services.get(name)
            if value is True:
                services[name] = {}
            elif value is False:
                services[name] = None
            elif isinstance(value, (str, int, float)):
                services[name] = {"version": str(value)}
        return {**data, "services": services}

    def load(self, project_dir: str = ".", global_path: Optional[str] = None) -> Config:
        """
        Builds the file-based config: defaults, then the global file, then the
        project file. Command-line flags go on top with :func:`apply_flags`.
        """
        config = Config()
        paths: List[str] = [
            global_path or global_config_path(),
            os.path.join(project_dir, PROJECT_CONFIG_FILE),
        ]
        for path in paths:
            file_config = self.parse(path)
            if file_config is not None:
                config.merge(file_config)
        return config


def apply_flags(config: Config,
                php: Optional[str] = None,
                node: Optional[str] = None,
                rust: bool = False,
                go: Optional[str] = None,
                mysql: Optional[str] = None,
                redis: bool = False,
                postgres: Optional[str] = None,
                network: Optional[str] = None,
                name: Optional[str] = None,
                shell: Optional[str] = None) -> Config:
    """
    Applies command-line flags on top of a loaded config. Only flags that were
    given take effect. A service flag keeps the file's credentials and only
    sets the version.
    """
    if php is not None:
        config.runtimes.php = php
    if node is not None:
        config.runtimes.node = node
    if rust:
        config.runtimes.rust = True
    if go is not None:
        config.runtimes.go = go

    if mysql is not None:
        current = config.services.mysql or MysqlConfig()
        config.services.mysql = current.model_copy(update={"version": mysql})
    if redis:
        config.services.redis = True
    if postgres is not None:
        current = config.services.postgres or PostgresConfig()
        config.services.postgres = current.model_copy(update={"version": postgres})

    if network is not None:
        config.container.network = network
    if name is not None:
        config.container.name = name
    if shell is not None:
        config.container.shell = shell
    return config
