"""
Configuration schema, as loaded from global and project YAML files and CLI flags.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RuntimeConfig(BaseModel):
    """
    Language runtimes layered into the dev image.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    php: Optional[str] = None
    node: Optional[str] = None
    rust: Optional[bool] = None
    go: Optional[str] = None


class MysqlConfig(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    version: str = "8.0"
    database: str = "app"
    username: str = "root"
    password: str = "password"


class PostgresConfig(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    version: str = "16"
    database: str = "app"
    username: str = "postgres"
    password: str = "password"


class ServiceConfig(BaseModel):
    """
    Service containers started next to the dev container.
    """
    mysql: Optional[MysqlConfig] = None
    redis: Optional[bool] = None
    postgres: Optional[PostgresConfig] = None


class HookConfig(BaseModel):
    """
    Shell commands run inside the dev container after start and before stop.
    """
    post_start: List[str] = []
    pre_stop: List[str] = []


class ShellConfig(BaseModel):
    mount_configs: Optional[bool] = None


class ContainerConfig(BaseModel):
    """
    Naming overrides and extra environment for the dev container.
    """
    network: Optional[str] = None
    name: Optional[str] = None
    shell: Optional[str] = None
    env_files: List[str] = []


class Config(BaseModel):
    """
    Complete, merged configuration for one invocation.
    """
    runtimes: RuntimeConfig = Field(default_factory=RuntimeConfig)
    services: ServiceConfig = Field(default_factory=ServiceConfig)
    hooks: HookConfig = Field(default_factory=HookConfig)
    shell: ShellConfig = Field(default_factory=ShellConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)

    def merge(self, other: "Config") -> None:
        """
        Layers ``other`` on top of this config in place. Values that are set
        in ``other`` win; hook and env-file lists only win when non-empty.
        """
        for section in ("runtimes", "services", "shell"):
            target = getattr(self, section)
            for key, value in getattr(other, section):
                if value is not None:
                    setattr(target, key, value)

        if other.hooks.post_start:
            self.hooks.post_start = list(other.hooks.post_start)
        if other.hooks.pre_stop:
            self.hooks.pre_stop = list(other.hooks.pre_stop)

        for key in ("network", "name", "shell"):
            value = getattr(other.container, key)
            if value is not None:
                setattr(self.container, key, value)
        if other.container.env_files:
            self.container.env_files = list(other.container.env_files)
