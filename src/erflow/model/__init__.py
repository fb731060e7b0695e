"""Concurrency model layer: pools, queue, workers, background processes.

The session controller lives in ``erflow.model.session``.
"""

from erflow.model.run_state import RunState
from erflow.model.resource_pool import CountingResourcePool, ResourcePools
from erflow.model.patient import Patient
from erflow.model.admission_queue import AdmissionQueue
from erflow.model.events import SessionEvent, EventBus
from erflow.model.tasks import TaskGroup
from erflow.model.workers import TreatmentWorkerPool
from erflow.model.background import ArrivalGenerator, CapacityAdjuster, StaffBreakSimulator

__all__ = [
    "RunState",
    "CountingResourcePool",
    "ResourcePools",
    "Patient",
    "AdmissionQueue",
    "SessionEvent",
    "EventBus",
    "TaskGroup",
    "TreatmentWorkerPool",
    "ArrivalGenerator",
    "CapacityAdjuster",
    "StaffBreakSimulator",
]
