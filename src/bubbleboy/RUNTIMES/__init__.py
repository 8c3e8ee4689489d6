"""
Language runtime layers for the dev image.
"""
from typing import List

from ..MODELS.config import Config
from .base import Runtime
from .go import GoRuntime
from .node import NodeRuntime
from .php import PhpRuntime
from .rust import RustRuntime


def collect_runtimes(config: Config) -> List[Runtime]:
    """
    Builds the configured runtimes in their fixed layer order: php, node, rust, go.

    :raises ConfigError: If a configured version is not supported.
    """
    runtimes: List[Runtime] = []
    if config.runtimes.php:
        runtimes.append(PhpRuntime(config.runtimes.php))
    if config.runtimes.node:
        runtimes.append(NodeRuntime(config.runtimes.node))
    if config.runtimes.rust:
        runtimes.append(RustRuntime())
    if config.runtimes.go:
        runtimes.append(GoRuntime(config.runtimes.go))
    return runtimes


__all__ = ["Runtime", "PhpRuntime", "NodeRuntime", "RustRuntime", "GoRuntime", "collect_runtimes"]
