"""Thread group with a shared stop signal and a join barrier."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from erflow.model.run_state import RunState

logger = logging.getLogger(__name__)


@dataclass
class TaskFailure:
    """A task that ended with an exception."""
    task_name: str
    error: BaseException


class TaskGroup:
    """Runs named tasks on their own threads until joined.

    A task that raises is logged, recorded in ``failures`` and stops the
    run state so the rest of the group winds down instead of waiting on
    work that will never arrive.

    Attributes:
        run_state: Signal shared by every task in the group.
        failures: Tasks that ended with an exception.
    """

    def __init__(self, run_state: RunState):
        self.run_state = run_state
        self.failures: List[TaskFailure] = []
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def spawn(self, name: str, target: Callable[[], None]) -> threading.Thread:
        """Start ``target`` on a new thread called ``name``."""
        thread = threading.Thread(target=self._run, args=(name, target), name=name)
        with self._lock:
            self._threads.append(thread)
        thread.start()
        logger.debug(f"Started task {name}")
        return thread

    def _run(self, name: str, target: Callable[[], None]) -> None:
        try:
            target()
        except Exception as e:
            logger.exception(f"Task {name} crashed")
            with self._lock:
                self.failures.append(TaskFailure(task_name=name, error=e))
            self.run_state.stop()
        else:
            logger.debug(f"Task {name} finished")

    @property
    def task_names(self) -> List[str]:
        with self._lock:
            return [t.name for t in self._threads]

    def alive(self) -> List[str]:
        """Names of tasks still running."""
        with self._lock:
            return [t.name for t in self._threads if t.is_alive()]

    def join(self, timeout: Optional[float] = None) -> List[str]:
        """Wait for every task to finish.

        Args:
            timeout: Overall limit in seconds. None waits for all tasks.

        Returns:
            Names of tasks still running when the wait ended (empty when
            the group is quiescent).
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        return self.alive()
