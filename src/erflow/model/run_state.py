"""Session-wide run/stop signal."""

import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)


class RunState:
    """Cancellation token shared by every loop in a session.

    Starts running. ``stop()`` flips it exactly once; it can never be
    restarted. Listeners registered with ``add_listener`` are called on
    the stopping thread so blocked waiters (queue, pools) can be woken.
    """

    def __init__(self):
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._listeners: List[Callable[[], None]] = []

    @property
    def is_running(self) -> bool:
        return not self._stopped.is_set()

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` on stop (immediately if already stopped)."""
        with self._lock:
            if self.is_running:
                self._listeners.append(callback)
                return
        callback()

    def stop(self) -> bool:
        """Stop the session.

        Returns:
            True if this call performed the transition, False if the
            state was already stopped.
        """
        with self._lock:
            if self._stopped.is_set():
                return False
            self._stopped.set()
            listeners = list(self._listeners)
            self._listeners.clear()

        logger.debug(f"Run state stopped, notifying {len(listeners)} listener(s)")
        for callback in listeners:
            callback()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stopped or ``timeout`` seconds pass.

        Returns:
            True if the state is stopped.
        """
        return self._stopped.wait(timeout)
