"""Console output of session events."""

from erflow.display.console import ConsoleTable

__all__ = ["ConsoleTable"]
