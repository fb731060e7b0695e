"""
Counting Resource Pools for ER Flow.

Each pool is a counting semaphore over one kind of resource (doctors,
nurses, exam rooms, ventilators) shared by the treatment workers and the
background processes that change capacity while the session runs.

Capacity is not bounded above: shift changes may keep adding units for
the whole session.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from erflow.core.scenario import Scenario
from erflow.model.run_state import RunState


@dataclass
class CapacityChangeEvent:
    """Record of a capacity change."""
    time: float
    old_capacity: int
    new_capacity: int
    reason: str = ""


class CountingResourcePool:
    """
    Blocking/non-blocking counting semaphore for one resource type.

    ``acquire`` blocks until a unit is free, ``try_acquire`` never blocks,
    ``release`` never blocks. Waiters are woken one per release; which of
    them wins is up to the thread scheduler.

    Acquisition is shutdown-aware: given a stopped ``RunState``, a waiter
    gives up only when the pool is starved (nothing available and nothing
    held), since then no release can ever arrive. While any unit is held
    the waiter keeps waiting, so work already dequeued still completes.

    Attributes:
        name: Resource identifier (e.g., "doctors", "ventilators").
        capacity_log: Structural capacity changes (initial and additions).
    """

    def __init__(
        self,
        name: str,
        initial_capacity: int,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize a pool.

        Args:
            name: Resource name for logging and identification.
            initial_capacity: Units available at start.
            clock: Time source for the capacity log (defaults to monotonic seconds).
        """
        if initial_capacity < 0:
            raise ValueError(f"{name}: initial capacity must be non-negative")
        self.name = name
        self._available = initial_capacity
        self._in_use = 0
        self._cond = threading.Condition(threading.Lock())
        self._clock = clock or time.monotonic

        self.capacity_log: List[CapacityChangeEvent] = [
            CapacityChangeEvent(
                time=self._clock(),
                old_capacity=initial_capacity,
                new_capacity=initial_capacity,
                reason="initial"
            )
        ]

    def __repr__(self) -> str:
        return f"CountingResourcePool({self.name!r}, available={self._available}, in_use={self._in_use})"

    def available(self) -> int:
        """Units free right now. For display only; stale as soon as it returns."""
        with self._cond:
            return self._available

    @property
    def in_use(self) -> int:
        """Units currently held by acquirers."""
        with self._cond:
            return self._in_use

    def _starved(self) -> bool:
        return self._available == 0 and self._in_use == 0

    def acquire(self, cancel: Optional[RunState] = None) -> bool:
        """
        Take one unit, blocking until one is free.

        Args:
            cancel: Run state to observe. Without it the call blocks for as
                long as it takes.

        Returns:
            True once a unit is held. False only if ``cancel`` has stopped
            and the pool is starved.
        """
        with self._cond:
            while self._available == 0:
                if cancel is not None and not cancel.is_running and self._starved():
                    return False
                self._cond.wait()
            self._available -= 1
            self._in_use += 1
            return True

    def try_acquire(self) -> bool:
        """Take one unit if one is free, without blocking."""
        with self._cond:
            if self._available > 0:
                self._available -= 1
                self._in_use += 1
                return True
            return False

    def release(self) -> None:
        """Return one unit and wake one waiter."""
        with self._cond:
            self._available += 1
            if self._in_use > 0:
                self._in_use -= 1
            self._cond.notify()

    def add_capacity(self, amount: int, reason: str = "") -> int:
        """
        Increase capacity with units nobody held before.

        Args:
            amount: Number of units to add.
            reason: Reason for the change (recorded in the capacity log).

        Returns:
            Number of units added.
        """
        if amount <= 0:
            return 0
        with self._cond:
            old_capacity = self._available + self._in_use
            self._available += amount
            self.capacity_log.append(CapacityChangeEvent(
                time=self._clock(),
                old_capacity=old_capacity,
                new_capacity=old_capacity + amount,
                reason=reason or f"add_{amount}"
            ))
            self._cond.notify(amount)
        return amount

    def wake_all(self) -> None:
        """Wake every waiter so it can re-check the run state."""
        with self._cond:
            self._cond.notify_all()

    def get_capacity_timeline(self) -> List[Tuple[float, int]]:
        """
        Get total capacity over time for plotting.

        Returns:
            List of (time, capacity) tuples.
        """
        return [(event.time, event.new_capacity) for event in self.capacity_log]

    def get_metrics(self) -> dict:
        """
        Summarise capacity changes.

        Returns:
            Dictionary with scaling statistics.
        """
        initial = self.capacity_log[0].new_capacity
        final = self.capacity_log[-1].new_capacity
        return {
            "scale_up_events": len(self.capacity_log) - 1,
            "units_added": final - initial,
            "initial_capacity": initial,
            "max_capacity_reached": max(e.new_capacity for e in self.capacity_log),
        }


@dataclass
class ResourcePools:
    """The four pools a treatment needs.

    Workers always acquire in the order doctors, nurses, exam rooms so that
    no two workers can wait on each other in a cycle.
    """

    doctors: CountingResourcePool
    nurses: CountingResourcePool
    exam_rooms: CountingResourcePool
    ventilators: CountingResourcePool
    _by_name: Dict[str, CountingResourcePool] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {
            pool.name: pool
            for pool in (self.doctors, self.nurses, self.exam_rooms, self.ventilators)
        }

    @classmethod
    def from_scenario(
        cls,
        scenario: Scenario,
        clock: Optional[Callable[[], float]] = None,
    ) -> "ResourcePools":
        """Create pools with the scenario's initial counts."""
        return cls(
            doctors=CountingResourcePool("doctors", scenario.n_doctors, clock),
            nurses=CountingResourcePool("nurses", scenario.n_nurses, clock),
            exam_rooms=CountingResourcePool("exam_rooms", scenario.n_exam_rooms, clock),
            ventilators=CountingResourcePool("ventilators", scenario.n_ventilators, clock),
        )

    @property
    def treatment_order(self) -> Tuple[CountingResourcePool, ...]:
        """Pools every treatment acquires, in the global acquisition order."""
        return (self.doctors, self.nurses, self.exam_rooms)

    def get_pool(self, name: str) -> Optional[CountingResourcePool]:
        """Get a pool by name."""
        return self._by_name.get(name)

    def get_all_pools(self) -> Dict[str, CountingResourcePool]:
        """Get all pools keyed by name."""
        return self._by_name.copy()

    def snapshot(self) -> Dict[str, int]:
        """Point-in-time available units of every pool (display only)."""
        return {name: pool.available() for name, pool in self._by_name.items()}

    def wake_all(self) -> None:
        """Wake every waiter on every pool."""
        for pool in self._by_name.values():
            pool.wake_all()

    def get_aggregated_metrics(self) -> dict:
        """Capacity metrics for every pool."""
        return {name: pool.get_metrics() for name, pool in self._by_name.items()}
