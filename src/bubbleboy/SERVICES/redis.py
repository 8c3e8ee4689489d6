from typing import List, Tuple

from .base import Service


class RedisService(Service):
    name = "redis"

    def image(self) -> str:
        return "redis:alpine"

    def primary_env(self) -> List[Tuple[str, str]]:
        return [("REDIS_HOST", "redis"), ("REDIS_PORT", "6379")]

    def readiness_command(self) -> List[str]:
        return ["redis-cli", "ping"]
