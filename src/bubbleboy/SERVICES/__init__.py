"""
Service containers that can run alongside the dev container.
"""
from typing import List

from ..MODELS.config import Config
from ..MODELS.service_descriptor import ServiceDescriptor
from .base import Service
from .mysql import MysqlService
from .postgres import PostgresService
from .redis import RedisService


def collect_services(config: Config, project: str) -> List[Service]:
    """
    Builds the configured services in their fixed start order: mysql, postgres, redis.
    """
    services: List[Service] = []
    if config.services.mysql is not None:
        services.append(MysqlService(config.services.mysql, project))
    if config.services.postgres is not None:
        services.append(PostgresService(config.services.postgres, project))
    if config.services.redis:
        services.append(RedisService(project))
    return services


def collect_descriptors(config: Config, project: str) -> List[ServiceDescriptor]:
    return [service.describe() for service in collect_services(config, project)]


__all__ = [
    "Service", "MysqlService", "PostgresService", "RedisService",
    "collect_services", "collect_descriptors",
]
