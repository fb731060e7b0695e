"""Background processes: arrivals, shift changes and staff breaks.

Each loop checks the run state between sleeps only; a sleep already in
progress always runs to completion, so a loop may take up to one full
interval to notice shutdown.
"""

import itertools
import logging
from typing import Callable, Dict

import numpy as np

from erflow.core.entities import EntityKind, EventStatus, PriorityLevel
from erflow.model.admission_queue import AdmissionQueue
from erflow.model.events import EventBus
from erflow.model.patient import Patient
from erflow.model.resource_pool import ResourcePools
from erflow.model.run_state import RunState

logger = logging.getLogger(__name__)

# Pools a shift change may reinforce; ventilators are never added.
SHIFT_CHANGE_POOLS = (
    ("doctors", "doctor(s)"),
    ("nurses", "nurse(s)"),
    ("exam_rooms", "exam room(s)"),
)


def sample_interarrival(rng: np.random.Generator, low: int, high: int) -> int:
    """Draw a whole number of time units uniformly from [low, high].

    Args:
        rng: NumPy random generator.
        low: Shortest gap (inclusive).
        high: Longest gap (inclusive).
    """
    return int(rng.integers(low, high + 1))


def sample_priority(rng: np.random.Generator) -> PriorityLevel:
    """Draw HIGH, MEDIUM or LOW with equal probability."""
    return PriorityLevel(int(rng.integers(int(PriorityLevel.HIGH), int(PriorityLevel.LOW) + 1)))


class ArrivalGenerator:
    """Creates patients at random intervals and admits them.

    Ids start at 1 and increase by one per arrival; the display name is
    derived from that same id.
    """

    def __init__(
        self,
        queue: AdmissionQueue,
        run_state: RunState,
        bus: EventBus,
        sleep: Callable[[float], None],
        rng_arrivals: np.random.Generator,
        rng_priority: np.random.Generator,
        arrival_min: int = 1,
        arrival_max: int = 5,
    ):
        self.queue = queue
        self.run_state = run_state
        self.bus = bus
        self.sleep = sleep
        self.rng_arrivals = rng_arrivals
        self.rng_priority = rng_priority
        self.arrival_min = arrival_min
        self.arrival_max = arrival_max
        self._ids = itertools.count(1)
        self.admitted = 0

    def run(self) -> None:
        while self.run_state.is_running:
            self.sleep(sample_interarrival(self.rng_arrivals, self.arrival_min, self.arrival_max))
            if not self.run_state.is_running:
                break
            self.arrive(sample_priority(self.rng_priority))

    def arrive(self, priority: PriorityLevel) -> Patient | None:
        """Admit one new patient.

        Returns:
            The admitted patient, or None if admissions had closed.
        """
        with self.queue.mutex:
            patient = Patient.admit(next(self._ids), priority, arrival_time=self.bus.clock())
            if not self.queue.push(patient):
                return None
            self.admitted += 1
            self.bus.emit(
                EntityKind.PATIENT,
                patient.id,
                patient.name,
                EventStatus.ARRIVED,
                priority=patient.priority,
                patient_id=patient.id,
            )
        logger.debug(f"{patient.name} arrived ({patient.priority.label})")
        return patient


class CapacityAdjuster:
    """Shift changes: periodically adds a doctor, nurse and/or exam room.

    Each interval every reinforceable pool independently gains one unit
    with probability 1/2. Capacity is never taken away here, so it can
    grow without bound over a long session.
    """

    def __init__(
        self,
        queue: AdmissionQueue,
        pools: ResourcePools,
        run_state: RunState,
        bus: EventBus,
        sleep: Callable[[float], None],
        rng: np.random.Generator,
        interval: float = 10.0,
    ):
        self.queue = queue
        self.pools = pools
        self.run_state = run_state
        self.bus = bus
        self.sleep = sleep
        self.rng = rng
        self.interval = interval

    def run(self) -> None:
        while self.run_state.is_running:
            self.sleep(self.interval)
            if not self.run_state.is_running:
                break
            self.adjust()

    def adjust(self) -> Dict[str, int]:
        """Apply one shift change.

        Returns:
            Units added per pool name.
        """
        added: Dict[str, int] = {}
        # Held so the notice is ordered consistently with arrivals.
        with self.queue.mutex:
            for pool_name, _ in SHIFT_CHANGE_POOLS:
                units = int(self.rng.integers(0, 2))
                added[pool_name] = self.pools.get_pool(pool_name).add_capacity(units, reason="shift_change")

            if any(added.values()):
                summary = ", ".join(f"{added[name]} {label}" for name, label in SHIFT_CHANGE_POOLS)
                message = f"Additional resources: {summary} added due to shift change"
                self.bus.emit(
                    EntityKind.SYSTEM,
                    0,
                    "Shift change",
                    EventStatus.CAPACITY_ADDED,
                    message=message,
                )
                logger.info(message)
        return added


class StaffBreakSimulator:
    """Periodically sends one doctor on a break.

    The doctor is taken only if one is free at that moment and is always
    given back afterwards, so total doctor capacity ends where it started.
    """

    def __init__(
        self,
        pools: ResourcePools,
        run_state: RunState,
        bus: EventBus,
        sleep: Callable[[float], None],
        interval: float = 20.0,
        duration: float = 5.0,
    ):
        self.pools = pools
        self.run_state = run_state
        self.bus = bus
        self.sleep = sleep
        self.interval = interval
        self.duration = duration
        self.breaks_taken = 0

    def run(self) -> None:
        while self.run_state.is_running:
            self.sleep(self.interval)
            if not self.run_state.is_running:
                break
            self.take_break()

    def take_break(self) -> bool:
        """Hold one doctor for the break duration.

        Returns:
            True if a doctor went on break, False if none was free.
        """
        doctors = self.pools.doctors
        if not doctors.try_acquire():
            logger.debug("No doctor free for a break")
            return False

        self.bus.emit(EntityKind.DOCTOR, 0, "Staff break", EventStatus.ON_BREAK,
                      message="A doctor has gone on a break")
        try:
            self.sleep(self.duration)
        finally:
            doctors.release()
        self.breaks_taken += 1
        self.bus.emit(EntityKind.DOCTOR, 0, "Staff break", EventStatus.BREAK_RETURN,
                      message="A doctor has returned from a break")
        return True
