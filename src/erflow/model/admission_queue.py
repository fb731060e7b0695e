"""Priority queue of patients waiting for treatment."""

import heapq
import logging
import threading
from typing import List, Optional, Tuple

from erflow.model.patient import Patient
from erflow.model.run_state import RunState

logger = logging.getLogger(__name__)


class AdmissionQueue:
    """Thread-safe admission queue ordered by (priority, id).

    Among patients of equal priority, lower ids (earlier arrivals) come
    first; a more urgent patient always comes before a less urgent one
    regardless of arrival order.

    ``pop_blocking`` keeps handing out patients after the run state stops
    until the queue is empty, and only then signals shutdown by returning
    None. Once stopped, the queue admits nobody new.
    """

    def __init__(self, run_state: RunState):
        self.run_state = run_state
        self._heap: List[Tuple[int, int, Patient]] = []
        # Re-entrant so holders of ``mutex`` may push.
        self._cond = threading.Condition(threading.RLock())
        run_state.add_listener(self.wake_all)

    @property
    def mutex(self) -> threading.Condition:
        """The queue's lock, for callers that must serialise with enqueueing."""
        return self._cond

    def __len__(self) -> int:
        with self._cond:
            return len(self._heap)

    def push(self, patient: Patient) -> bool:
        """Admit a patient and wake one waiting worker.

        Returns:
            False (and admits nothing) if the run state has stopped.
        """
        with self._cond:
            if not self.run_state.is_running:
                logger.debug(f"Refused {patient.name}: admissions closed")
                return False
            heapq.heappush(self._heap, (*patient.sort_key, patient))
            self._cond.notify()
        return True

    def pop_blocking(self, timeout: Optional[float] = None) -> Optional[Patient]:
        """Remove and return the most urgent patient, waiting if needed.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            The next patient, or None once the run state has stopped and
            the queue is empty (also None if ``timeout`` expires).
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._heap or not self.run_state.is_running,
                timeout=timeout,
            )
            if not self._heap:
                return None
            return heapq.heappop(self._heap)[-1]

    def snapshot(self) -> List[Patient]:
        """Waiting patients in dispatch order (display and tests only)."""
        with self._cond:
            return [entry[-1] for entry in sorted(self._heap)]

    def wake_all(self) -> None:
        """Wake every waiting worker so it can observe shutdown."""
        with self._cond:
            self._cond.notify_all()
