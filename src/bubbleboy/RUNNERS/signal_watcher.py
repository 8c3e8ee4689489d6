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
Interrupt handling for a running session: on SIGINT or SIGTERM, tear down
every tracked resource and exit with ``128 + signum``.
"""
import os
import queue
import signal
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from ..MANAGERS.cleanup_coordinator import CleanupCoordinator

WATCHED_SIGNALS: Tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)


class SignalWatcher:
    """
    Installs signal handlers that only enqueue the signal number. A daemon
    thread picks it up, runs the cleanup and terminates the process, so the
    cleanup lock is never taken inside a signal handler.
    """

    def __init__(self, coordinator: CleanupCoordinator, exit_func: Callable[[int], Any] = os._exit):
        """
        :param coordinator: Registry to drain on interrupt.
        :param exit_func: Called with the exit status after cleanup.
        """
        self.coordinator = coordinator
        self.exit_func = exit_func
        self._queue: "queue.SimpleQueue[Optional[int]]" = queue.SimpleQueue()
        self._previous: Dict[int, Any] = {}
        self._thread: Optional[threading.Thread] = None

    def _handle(self, signum, frame) -> None:
        self._queue.put(signum)

    def _watch(self) -> None:
        signum = self._queue.get()
        if signum is None:
            return
        print(f"\nReceived signal {signum}, cleaning up...")
        self.coordinator.cleanup()
        self.exit_func(128 + signum)

    def install(self) -> None:
        """Installs the handlers. Must be called from the main thread."""
        for sig in WATCHED_SIGNALS:
            self._previous[sig] = signal.signal(sig, self._handle)
        self._thread = threading.Thread(target=self._watch, name="bubble-boy-signals", daemon=True)
        self._thread.start()

    def uninstall(self) -> None:
        """Restores the previous handlers and stops the watcher thread."""
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous = {}
        if self._thread is not None:
            self._queue.put(None)
            self._thread.join(timeout=1)
            self._thread = None

    def __enter__(self) -> "SignalWatcher":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()
