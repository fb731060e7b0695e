"""Core foundation layer: entities, scenario configuration, errors."""

from erflow.core.entities import PriorityLevel, EntityKind, EventStatus
from erflow.core.errors import ERFlowError, ConfigError, SessionError
from erflow.core.scenario import Scenario
from erflow.core.config import load_scenario, save_scenario

__all__ = [
    "PriorityLevel",
    "EntityKind",
    "EventStatus",
    "ERFlowError",
    "ConfigError",
    "SessionError",
    "Scenario",
    "load_scenario",
    "save_scenario",
]
