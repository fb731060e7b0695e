"""Event logging during sessions."""

import threading
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import pandas as pd

from erflow.core.entities import EventStatus, PriorityLevel
from erflow.model.events import SessionEvent


@dataclass
class ResultsCollector:
    """Collect session events and compute summary metrics.

    Used as an event sink: ``bus.subscribe(collector.record)``. Safe to
    call from every worker and background thread at once.

    Attributes:
        events: Every event received, in emission order.
        arrivals: Count of admitted patients.
        treated: Count of finished treatments.
        abandoned: Count of patients dropped at shutdown.
        ventilator_unavailable: HIGH priority treatments without a ventilator.
        capacity_additions: Shift changes that added at least one unit.
        breaks: Completed staff breaks.
        dispatch_order: Patient ids in the order treatment started.
        wait_times: Arrival-to-treatment times by priority label.
    """

    events: List[SessionEvent] = field(default_factory=list)
    arrivals: int = 0
    treated: int = 0
    abandoned: int = 0
    ventilator_unavailable: int = 0
    capacity_additions: int = 0
    breaks: int = 0
    dispatch_order: List[int] = field(default_factory=list)
    wait_times: Dict[str, List[float]] = field(
        default_factory=lambda: {p.label: [] for p in PriorityLevel}
    )

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._arrival_times: Dict[int, float] = {}

    def record(self, event: SessionEvent) -> None:
        """Record one event."""
        with self._lock:
            self.events.append(event)
            status = event.status

            if status is EventStatus.ARRIVED:
                self.arrivals += 1
                self._arrival_times[event.patient_id] = event.time
            elif status is EventStatus.TREATING:
                self.dispatch_order.append(event.patient_id)
                arrived = self._arrival_times.get(event.patient_id)
                if arrived is not None and event.priority_label in self.wait_times:
                    self.wait_times[event.priority_label].append(max(0.0, event.time - arrived))
            elif status is EventStatus.FINISHED:
                self.treated += 1
            elif status is EventStatus.ABANDONED:
                self.abandoned += 1
            elif status is EventStatus.VENTILATOR_UNAVAILABLE:
                self.ventilator_unavailable += 1
            elif status is EventStatus.CAPACITY_ADDED:
                self.capacity_additions += 1
            elif status is EventStatus.BREAK_RETURN:
                self.breaks += 1

    def __call__(self, event: SessionEvent) -> None:
        self.record(event)

    def events_with_status(self, status: EventStatus) -> List[SessionEvent]:
        """Events of one kind, in emission order."""
        with self._lock:
            return [e for e in self.events if e.status is status]

    def compute_metrics(self) -> Dict:
        """Compute KPIs from collected events.

        Returns:
            Dictionary containing:
            - arrivals, treated, abandoned: Counts
            - ventilator_unavailable, capacity_additions, breaks: Counts
            - mean_wait, p95_wait: Arrival to treatment start (time units)
            - <Priority>_count, <Priority>_mean_wait: Per priority level
        """
        with self._lock:
            all_waits = [w for waits in self.wait_times.values() for w in waits]
            metrics = {
                "arrivals": self.arrivals,
                "treated": self.treated,
                "abandoned": self.abandoned,
                "ventilator_unavailable": self.ventilator_unavailable,
                "capacity_additions": self.capacity_additions,
                "breaks": self.breaks,
                "mean_wait": float(np.mean(all_waits)) if all_waits else 0.0,
                "p95_wait": float(np.percentile(all_waits, 95)) if all_waits else 0.0,
            }
            for label, waits in self.wait_times.items():
                metrics[f"{label}_count"] = len(waits)
                metrics[f"{label}_mean_wait"] = float(np.mean(waits)) if waits else 0.0
        return metrics

    def to_dataframe(self) -> pd.DataFrame:
        """All events as a DataFrame, one row per event."""
        with self._lock:
            records = [e.to_record() for e in self.events]
        columns = list(SessionEvent.__dataclass_fields__)
        return pd.DataFrame.from_records(records, columns=columns)
