"""Pytest fixtures for ER Flow tests."""

from types import SimpleNamespace

import pytest

from erflow.core.scenario import Scenario
from erflow.model.admission_queue import AdmissionQueue
from erflow.model.clock import SessionClock
from erflow.model.events import EventBus
from erflow.model.resource_pool import CountingResourcePool, ResourcePools
from erflow.model.run_state import RunState
from erflow.model.tasks import TaskGroup
from erflow.results.collector import ResultsCollector

# Seconds per time unit in tests: a 2-unit treatment takes 20 ms.
FAST_TIME_SCALE = 0.01

# Generous upper bound for joins so a hung thread fails instead of blocking.
JOIN_TIMEOUT = 10.0


@pytest.fixture
def default_seed() -> int:
    """Default random seed for reproducible tests."""
    return 42


@pytest.fixture
def fast_scenario() -> Scenario:
    """Reference session run a hundred times faster than real time."""
    return Scenario(time_scale=FAST_TIME_SCALE)


def build_env(doctors=3, nurses=2, exam_rooms=2, ventilators=1):
    """Wire a run state, pools, queue, bus and collector like a session does."""
    clock = SessionClock(FAST_TIME_SCALE)
    run_state = RunState()
    pools = ResourcePools(
        doctors=CountingResourcePool("doctors", doctors),
        nurses=CountingResourcePool("nurses", nurses),
        exam_rooms=CountingResourcePool("exam_rooms", exam_rooms),
        ventilators=CountingResourcePool("ventilators", ventilators),
    )
    run_state.add_listener(pools.wake_all)
    queue = AdmissionQueue(run_state)
    bus = EventBus(pools, clock.now)
    collector = ResultsCollector()
    bus.subscribe(collector.record)
    return SimpleNamespace(
        clock=clock,
        run_state=run_state,
        pools=pools,
        queue=queue,
        bus=bus,
        collector=collector,
        group=TaskGroup(run_state),
    )


@pytest.fixture
def env():
    """Default-sized environment (3 doctors, 2 nurses, 2 rooms, 1 ventilator)."""
    return build_env()


@pytest.fixture
def make_env():
    """Factory for environments with custom pool sizes."""
    return build_env
