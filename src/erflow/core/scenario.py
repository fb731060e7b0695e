"""Scenario configuration dataclass."""

from dataclasses import dataclass, fields
from typing import Optional

import numpy as np

from erflow.core.errors import ConfigError


# Fields that must be non-negative integers
COUNT_FIELDS = (
    "n_doctors",
    "n_nurses",
    "n_exam_rooms",
    "n_ventilators",
    "n_workers",
)

# Fields that must be strictly positive durations (time units)
DURATION_FIELDS = (
    "session_duration",
    "treatment_time",
    "adjust_interval",
    "break_interval",
    "time_scale",
)


def _is_integer(value) -> bool:
    # bool is an int subclass but never a valid count
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return _is_integer(value) or isinstance(value, float)


@dataclass
class Scenario:
    """Configuration for an emergency room session.

    Contains all parameters needed to run a session: horizon, initial
    resource counts, timing of the background processes, the wall-clock
    length of one time unit and the random seed.

    Times are expressed in abstract time units. ``time_scale`` converts them
    to seconds of real time, so the reference session (30 units at 1.0 s per
    unit) lasts 30 seconds while tests can run the same logic at 0.01.

    Attributes:
        session_duration: Length of the session in time units.
        n_doctors: Initial doctors available.
        n_nurses: Initial nurses available.
        n_exam_rooms: Initial exam rooms available.
        n_ventilators: Initial ventilators available.
        n_workers: Number of treatment worker threads.
        treatment_time: Fixed duration of one treatment.
        arrival_min: Shortest gap between arrivals (inclusive).
        arrival_max: Longest gap between arrivals (inclusive).
        adjust_interval: Time between shift-change capacity checks.
        break_interval: Time between staff break attempts.
        break_duration: How long a doctor stays on break.
        time_scale: Seconds of real time per time unit.
        random_seed: Master seed for reproducibility.
        enable_arrivals: Run the arrival generator.
        enable_capacity_adjuster: Run the shift-change process.
        enable_staff_breaks: Run the staff break process.
    """

    # Horizon
    session_duration: float = 30.0

    # Resources
    n_doctors: int = 3
    n_nurses: int = 2
    n_exam_rooms: int = 2
    n_ventilators: int = 1
    n_workers: int = 3

    # Timing (time units)
    treatment_time: float = 2.0
    arrival_min: int = 1
    arrival_max: int = 5
    adjust_interval: float = 10.0
    break_interval: float = 20.0
    break_duration: float = 5.0
    time_scale: float = 1.0

    # Reproducibility
    random_seed: int = 42

    # Background processes
    enable_arrivals: bool = True
    enable_capacity_adjuster: bool = True
    enable_staff_breaks: bool = True

    # RNG streams (created in __post_init__)
    rng_arrivals: Optional[np.random.Generator] = None
    rng_priority: Optional[np.random.Generator] = None
    rng_capacity: Optional[np.random.Generator] = None

    def __post_init__(self) -> None:
        """Validate parameters and initialize separate RNG streams."""
        self._validate()
        self.rng_arrivals = np.random.default_rng(self.random_seed)
        self.rng_priority = np.random.default_rng(self.random_seed + 1)
        self.rng_capacity = np.random.default_rng(self.random_seed + 2)

    def _validate(self) -> None:
        for name in COUNT_FIELDS + ("arrival_min", "arrival_max", "random_seed"):
            value = getattr(self, name)
            if not _is_integer(value) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
        for name in DURATION_FIELDS:
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigError(f"{name} must be positive, got {value!r}")
        if not _is_number(self.break_duration) or self.break_duration < 0:
            raise ConfigError(f"break_duration must be non-negative, got {self.break_duration!r}")
        if self.arrival_max < self.arrival_min:
            raise ConfigError(
                f"arrival range must satisfy 0 <= arrival_min <= arrival_max, "
                f"got [{self.arrival_min}, {self.arrival_max}]"
            )

    @property
    def session_seconds(self) -> float:
        """Session length in seconds of real time."""
        return self.session_duration * self.time_scale

    def to_dict(self) -> dict:
        """Plain parameters (no RNG streams), e.g. for saving to a file."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if not f.name.startswith("rng_")
        }

    def clone_with_seed(self, new_seed: int) -> "Scenario":
        """Create a copy of this scenario with a different seed.

        Args:
            new_seed: The new random seed to use.

        Returns:
            A new Scenario instance with updated seed and fresh RNGs.
        """
        params = self.to_dict()
        params["random_seed"] = new_seed
        return Scenario(**params)
