"""
ER Flow - emergency room admission and dispatch.

A real-time, multi-threaded model of an emergency room: patients are
admitted to a priority queue and treated by a pool of workers that share
doctors, nurses, exam rooms and ventilators.
"""

__version__ = "0.1.0"

from erflow.core.scenario import Scenario
from erflow.model.session import SessionController, run_session

__all__ = ["Scenario", "SessionController", "run_session", "__version__"]
