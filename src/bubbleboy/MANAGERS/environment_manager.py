"""
Assembly of the primary container's environment from env files, service
variables and the credential token.
"""
import os
from typing import Dict, List, Optional

from dotenv import dotenv_values

from ..UTILS.credentials import ENV_VAR_NAME


class EnvironmentManager:
    """
    Merges environment variables from multiple sources into a ``KEY=VALUE`` list.
    """
    def __init__(self, base_dir: str = "."):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        """
        self.base_dir = base_dir

    def load_env_files(self, env_files: List[str]) -> Dict[str, str]:
        """
        Reads env files in order; later files override earlier ones.
        Missing files are reported and skipped.
        """
        merged: Dict[str, str] = {}
        for env_file in env_files:
            file_path = os.path.join(self.base_dir, os.path.expanduser(env_file))
            if not os.path.isfile(file_path):
                print(f"Warning: env file not found: {file_path}")
                continue
            for key, value in dotenv_values(file_path).items():
                # Keys without a value ("FOO" alone on a line) come back as None
                merged[key] = value if value is not None else ""
        return merged

    def build_primary_env(self,
                          service_env: List[str],
                          env_files: List[str],
                          secret: Optional[str] = None) -> List[str]:
        """
        Builds the primary container environment.

        Precedence, lowest first: env files, service variables, the secret.

        :param service_env: ``KEY=VALUE`` strings from the running services.
        :param env_files: Paths of .env files, relative to ``base_dir``.
        :param secret: OAuth token passed to the container, if any.
        :return: ``KEY=VALUE`` strings.
        """
        env = self.load_env_files(env_files)

        for entry in service_env:
            key, _, value = entry.partition("=")
            env[key] = value

        if secret:
            env[ENV_VAR_NAME] = secret

        return [f"{key}={value}" for key, value in env.items()]
