"""Session events and their fan-out to sinks.

Every observable step of a session (arrival, treatment start and finish,
ventilator shortage, capacity additions, staff breaks) is published as a
:class:`SessionEvent` carrying a snapshot of the four resource pools.
Sinks are plain callables; the results collector and the console table
are the two shipped with the package.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from typing import Callable, List, Optional

from erflow.core.entities import EntityKind, EventStatus, PriorityLevel
from erflow.model.resource_pool import ResourcePools

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEvent:
    """One observable step of a session.

    Attributes:
        time: Session time of the event (time units).
        entity_kind: Patient, Doctor (worker) or System.
        entity_id: Patient id, worker id, or 0 for system notices.
        name: Patient name or a short notice title.
        priority_label: "High"/"Medium"/"Low", or "" when not patient related.
        status: What happened.
        doctors: Doctors available when the event was emitted.
        nurses: Nurses available when the event was emitted.
        exam_rooms: Exam rooms available when the event was emitted.
        ventilators: Ventilators available when the event was emitted.
        patient_id: Patient concerned, if any.
        message: Free text for notices.
    """
    time: float
    entity_kind: EntityKind
    entity_id: int
    name: str
    priority_label: str
    status: EventStatus
    doctors: int
    nurses: int
    exam_rooms: int
    ventilators: int
    patient_id: Optional[int] = None
    message: str = ""

    def to_record(self) -> dict:
        """Flat dict with enum values as labels (for DataFrames and CSV)."""
        record = asdict(self)
        record["entity_kind"] = self.entity_kind.value
        record["status"] = self.status.value
        return record


EventSink = Callable[[SessionEvent], None]


class EventBus:
    """Builds events from the live pools and hands them to every sink.

    A sink that raises is logged and skipped; it never interrupts the
    thread that emitted the event.
    """

    def __init__(self, pools: ResourcePools, clock: Callable[[], float]):
        """
        Args:
            pools: Pools to snapshot into every event.
            clock: Returns the current session time.
        """
        self.pools = pools
        self.clock = clock
        self._sinks: List[EventSink] = []
        self._lock = threading.Lock()

    def subscribe(self, sink: EventSink) -> None:
        """Register a sink."""
        with self._lock:
            self._sinks.append(sink)

    def emit(
        self,
        entity_kind: EntityKind,
        entity_id: int,
        name: str,
        status: EventStatus,
        priority: Optional[PriorityLevel] = None,
        patient_id: Optional[int] = None,
        message: str = "",
    ) -> SessionEvent:
        """Publish an event to every sink and return it."""
        snapshot = self.pools.snapshot()
        event = SessionEvent(
            time=self.clock(),
            entity_kind=entity_kind,
            entity_id=entity_id,
            name=name,
            priority_label=priority.label if priority is not None else "",
            status=status,
            doctors=snapshot["doctors"],
            nurses=snapshot["nurses"],
            exam_rooms=snapshot["exam_rooms"],
            ventilators=snapshot["ventilators"],
            patient_id=patient_id,
            message=message,
        )

        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            try:
                sink(event)
            except Exception as e:
                logger.warning(f"Event sink {sink!r} failed on {status.value}: {e}")
        return event
