from typing import List, Tuple

from ..MODELS.config import PostgresConfig
from .base import Service


class PostgresService(Service):
    name = "postgres"
    data_dir = "/var/lib/postgresql/data"

    def __init__(self, config: PostgresConfig, project: str):
        super().__init__(project)
        self.config = config

    def image(self) -> str:
        return f"postgres:{self.config.version}"

    def container_env(self) -> List[str]:
        return [
            f"POSTGRES_USER={self.config.username}",
            f"POSTGRES_PASSWORD={self.config.password}",
            f"POSTGRES_DB={self.config.database}",
        ]

    def primary_env(self) -> List[Tuple[str, str]]:
        return [
            ("DB_HOST", "postgres"),
            ("DB_PORT", "5432"),
            ("DB_DATABASE", self.config.database),
            ("DB_USERNAME", self.config.username),
            ("DB_PASSWORD", self.config.password),
        ]

    def readiness_command(self) -> List[str]:
        return ["pg_isready", "-U", self.config.username]
