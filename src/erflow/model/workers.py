"""Treatment workers: dequeue, acquire, treat, release."""

import logging
from typing import Callable, List

from erflow.core.entities import EntityKind, EventStatus, PriorityLevel
from erflow.model.admission_queue import AdmissionQueue
from erflow.model.events import EventBus
from erflow.model.patient import Patient
from erflow.model.resource_pool import CountingResourcePool, ResourcePools
from erflow.model.run_state import RunState
from erflow.model.tasks import TaskGroup

logger = logging.getLogger(__name__)


class TreatmentWorkerPool:
    """Fixed set of identical worker loops.

    Each worker repeatedly takes the most urgent waiting patient, acquires
    a doctor, a nurse and an exam room (always in that order), tries for a
    ventilator if the patient is HIGH priority, treats for a fixed time and
    releases everything. A worker exits once the queue reports shutdown,
    which only happens after the queue is drained.

    Attributes:
        n_workers: Number of worker threads.
        treatment_time: Duration of one treatment (time units).
    """

    def __init__(
        self,
        n_workers: int,
        queue: AdmissionQueue,
        pools: ResourcePools,
        run_state: RunState,
        bus: EventBus,
        sleep: Callable[[float], None],
        treatment_time: float = 2.0,
    ):
        self.n_workers = n_workers
        self.queue = queue
        self.pools = pools
        self.run_state = run_state
        self.bus = bus
        self.sleep = sleep
        self.treatment_time = treatment_time

    def start(self, group: TaskGroup) -> None:
        """Spawn one thread per worker; worker ids start at 1."""
        for worker_id in range(1, self.n_workers + 1):
            group.spawn(f"doctor-{worker_id}", lambda worker_id=worker_id: self.run_worker(worker_id))

    def run_worker(self, worker_id: int) -> None:
        """Worker loop. Returns once shutdown is signalled and the queue is empty."""
        while True:
            patient = self.queue.pop_blocking()
            if patient is None:
                break
            self.treat(worker_id, patient)
        logger.debug(f"Doctor {worker_id} off shift")

    def treat(self, worker_id: int, patient: Patient) -> bool:
        """Take one patient through acquire, treatment and release.

        Returns:
            True if the patient was treated, False if shutdown left a
            required resource permanently unavailable.
        """
        held: List[CountingResourcePool] = []
        for pool in self.pools.treatment_order:
            if not pool.acquire(cancel=self.run_state):
                self._release_all(held)
                logger.warning(
                    f"Doctor {worker_id} abandoned {patient.name}: no {pool.name} left at shutdown"
                )
                self._emit(worker_id, patient, EventStatus.ABANDONED,
                           message=f"No {pool.name} available at shutdown")
                return False
            held.append(pool)

        ventilator = False
        try:
            if patient.priority == PriorityLevel.HIGH:
                ventilator = self.pools.ventilators.try_acquire()
                if not ventilator:
                    self._emit(worker_id, patient, EventStatus.VENTILATOR_UNAVAILABLE,
                               message=f"Ventilator unavailable for {patient.name}")

            self._emit(worker_id, patient, EventStatus.TREATING)
            self.sleep(self.treatment_time)
        finally:
            if ventilator:
                self.pools.ventilators.release()
            self._release_all(held)

        self._emit(worker_id, patient, EventStatus.FINISHED)
        return True

    @staticmethod
    def _release_all(held: List[CountingResourcePool]) -> None:
        for pool in held:
            pool.release()

    def _emit(self, worker_id: int, patient: Patient, status: EventStatus, message: str = "") -> None:
        self.bus.emit(
            EntityKind.DOCTOR,
            worker_id,
            patient.name,
            status,
            priority=patient.priority,
            patient_id=patient.id,
            message=message,
        )
