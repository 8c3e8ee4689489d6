from typing import List, Tuple

from ..MODELS.config import MysqlConfig
from .base import Service


class MysqlService(Service):
    name = "mysql"
    data_dir = "/var/lib/mysql"

    def __init__(self, config: MysqlConfig, project: str):
        super().__init__(project)
        self.config = config

    def image(self) -> str:
        return f"mysql:{self.config.version}"

    def container_env(self) -> List[str]:
        env = [
            f"MYSQL_ROOT_PASSWORD={self.config.password}",
            f"MYSQL_DATABASE={self.config.database}",
        ]
        # MYSQL_USER=root is rejected by the image
        if self.config.username != "root":
            env.append(f"MYSQL_USER={self.config.username}")
            env.append(f"MYSQL_PASSWORD={self.config.password}")
        return env

    def primary_env(self) -> List[Tuple[str, str]]:
        return [
            ("DB_HOST", "mysql"),
            ("DB_PORT", "3306"),
            ("DB_DATABASE", self.config.database),
            ("DB_USERNAME", self.config.username),
            ("DB_PASSWORD", self.config.password),
        ]

    def readiness_command(self) -> List[str]:
        return ["mysqladmin", "ping", "-h", "127.0.0.1", "--silent"]
