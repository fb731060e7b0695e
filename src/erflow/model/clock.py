"""Wall-clock timing for a session."""

import time


class SessionClock:
    """Converts between session time units and real seconds.

    Attributes:
        time_scale: Seconds of real time per time unit.
    """

    def __init__(self, time_scale: float = 1.0):
        self.time_scale = time_scale
        self._start = time.monotonic()

    def restart(self) -> None:
        """Make now() count from this moment."""
        self._start = time.monotonic()

    def now(self) -> float:
        """Elapsed session time in time units."""
        return (time.monotonic() - self._start) / self.time_scale

    def sleep(self, units: float) -> None:
        """Block the calling thread for ``units`` time units."""
        if units > 0:
            time.sleep(units * self.time_scale)
