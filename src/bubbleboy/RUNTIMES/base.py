"""
Common interface for language runtime layers.
"""
from typing import Dict, List
from jinja2 import Template

from ..errors import ConfigError


class Runtime:
    """
    A language runtime installed as one layer of the dev image.
    """
    name = ""
    label = ""
    template = ""
    supported_versions: List[str] = []

    def __init__(self, version: str = ""):
        if self.supported_versions and version not in self.supported_versions:
            raise ConfigError(
                f"unsupported {self.label} version '{version}': "
                f"supported versions are {', '.join(self.supported_versions)}",
                details={"runtime": self.name, "version": version},
            )
        self.version = version

    def context(self) -> Dict[str, str]:
        return {f"{self.name}_version": self.version}

    def describe(self) -> str:
        """Short human-readable summary, e.g. ``PHP 8.3``."""
        return f"{self.label} {self.version}".strip()

    def render(self) -> str:
        """Renders this runtime's Dockerfile layer."""
        return Template(self.template, keep_trailing_newline=True).render(**self.context())
