"""
Execution of user-configured lifecycle hooks inside the primary container.
"""
from typing import List

from ..MODELS.config import HookConfig


class HookRunner:
    """
    Runs ``post_start`` and ``pre_stop`` hook commands, one after another.
    A failing hook is reported and the next one still runs.
    """
    def __init__(self, container_manager, container_id: str, hooks: HookConfig):
        """
        :param container_manager: Anything with an ``exec_silent(id, cmd)`` method.
        :param container_id: The primary container.
        :param hooks: Hook commands from the configuration.
        """
        self.container_manager = container_manager
        self.container_id = container_id
        self.hooks = hooks

    def run_post_start(self) -> List[str]:
        return self._run("post_start", self.hooks.post_start)

    def run_pre_stop(self) -> List[str]:
        return self._run("pre_stop", self.hooks.pre_stop)

    def _run(self, phase: str, commands: List[str]) -> List[str]:
        """
        :return: The commands that failed.
        """
        failed = []
        if not commands:
            return failed

        print(f"[hooks] Running {phase} hooks")
        for command in commands:
            print(f"[hooks] {phase}: {command}")
            if not self.container_manager.exec_silent(self.container_id, command):
                print(f"Warning: {phase} hook failed: {command}")
                failed.append(command)
        return failed
