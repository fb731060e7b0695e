"""Patient entity definition."""

from dataclasses import dataclass

from erflow.core.entities import PriorityLevel


def patient_name(patient_id: int) -> str:
    """Display name for a patient id."""
    return f"Patient_{patient_id}"


@dataclass(frozen=True)
class Patient:
    """A request for treatment, immutable once admitted.

    Attributes:
        id: Unique, strictly increasing identifier assigned at arrival.
        name: Display name.
        priority: Triage priority (HIGH/MEDIUM/LOW).
        arrival_time: Session time of arrival (time units).
    """

    id: int
    name: str
    priority: PriorityLevel
    arrival_time: float = 0.0

    @classmethod
    def admit(cls, patient_id: int, priority: PriorityLevel, arrival_time: float = 0.0) -> "Patient":
        """Create a patient whose name is derived from its own id."""
        return cls(
            id=patient_id,
            name=patient_name(patient_id),
            priority=PriorityLevel(priority),
            arrival_time=arrival_time,
        )

    @property
    def sort_key(self) -> tuple:
        """Dispatch order: priority first, then first-come-first-served."""
        return (int(self.priority), self.id)
