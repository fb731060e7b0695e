"""Fixed-width console table of session events."""

import sys
import threading
from typing import TextIO

from erflow.core.entities import EntityKind
from erflow.model.events import SessionEvent

COLUMNS = (
    ("Entity", 10),
    ("ID", 10),
    ("Name", 20),
    ("Priority", 15),
    ("Status", 20),
    ("Doctors", 10),
    ("Nurses", 10),
    ("Rooms", 10),
    ("Ventilators", 12),
)

TABLE_WIDTH = sum(width for _, width in COLUMNS)


class ConsoleTable:
    """Event sink that prints one row per patient/doctor event.

    System notices and messages that explain an event (ventilator
    shortage, shift change, break) are printed as plain lines.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()

    def print_header(self) -> None:
        with self._lock:
            header = "".join(f"{title:>{width}}" for title, width in COLUMNS)
            self.stream.write(header + "\n")
            self.stream.write("-" * TABLE_WIDTH + "\n")

    def format_row(self, event: SessionEvent) -> str:
        values = (
            event.entity_kind.value,
            event.entity_id,
            event.name,
            event.priority_label,
            event.status.value,
            event.doctors,
            event.nurses,
            event.exam_rooms,
            event.ventilators,
        )
        return "".join(f"{value!s:>{width}}" for value, (_, width) in zip(values, COLUMNS))

    def __call__(self, event: SessionEvent) -> None:
        if event.entity_kind is EntityKind.SYSTEM or event.message:
            line = event.message or event.status.value
        else:
            line = self.format_row(event)
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()
