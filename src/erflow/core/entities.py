"""Core entity definitions for the simulation.

This module contains enums and basic types that are used across
the codebase, placed here to avoid circular imports.
"""

from enum import Enum, IntEnum


class PriorityLevel(IntEnum):
    """Triage priority levels. Lower value = more urgent.

    HIGH is always dispatched before MEDIUM, MEDIUM before LOW.
    """
    HIGH = 1
    MEDIUM = 2
    LOW = 3

    @property
    def label(self) -> str:
        """Display label ("High", "Medium", "Low")."""
        return self.name.capitalize()


class EntityKind(Enum):
    """Who an event is about."""
    PATIENT = "Patient"
    DOCTOR = "Doctor"
    SYSTEM = "System"    # Capacity notices not tied to one doctor


class EventStatus(Enum):
    """Status labels carried by session events."""
    ARRIVED = "Arrived"
    TREATING = "Treating..."
    FINISHED = "Finished"
    VENTILATOR_UNAVAILABLE = "No ventilator"
    ABANDONED = "Abandoned"        # Resources never became available before shutdown
    CAPACITY_ADDED = "Resources added"
    ON_BREAK = "On break"
    BREAK_RETURN = "Back from break"
