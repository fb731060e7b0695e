"""
Tests for CountingResourcePool.

Verifies blocking and non-blocking acquisition, release, capacity growth
and the shutdown-aware acquire.
"""

import threading

import pytest

from erflow.core.scenario import Scenario
from erflow.model.resource_pool import (
    CapacityChangeEvent,
    CountingResourcePool,
    ResourcePools,
)
from erflow.model.run_state import RunState


def acquire_in_thread(pool, cancel=None):
    """Start a thread that acquires from ``pool``; returns (done event, result list)."""
    done = threading.Event()
    result = []

    def target():
        result.append(pool.acquire(cancel=cancel))
        done.set()

    threading.Thread(target=target, daemon=True).start()
    return done, result


class TestCountingResourcePool:
    """Tests for CountingResourcePool class."""

    def test_initial_capacity(self):
        pool = CountingResourcePool("doctors", 3)

        assert pool.available() == 3
        assert pool.in_use == 0

    def test_negative_initial_capacity_rejected(self):
        with pytest.raises(ValueError):
            CountingResourcePool("doctors", -1)

    def test_acquire_release_round_trip(self):
        """Release after acquire restores the previous capacity."""
        pool = CountingResourcePool("nurses", 2)

        assert pool.acquire() is True
        assert pool.available() == 1
        assert pool.in_use == 1

        pool.release()

        assert pool.available() == 2
        assert pool.in_use == 0

    def test_at_most_n_concurrent_holders(self):
        """The (N+1)-th acquirer blocks until a release."""
        pool = CountingResourcePool("exam_rooms", 2)
        pool.acquire()
        pool.acquire()

        done, result = acquire_in_thread(pool)

        assert not done.wait(0.2)
        assert pool.available() == 0

        pool.release()

        assert done.wait(2.0)
        assert result == [True]
        assert pool.available() == 0

    def test_try_acquire_empty_pool(self):
        """try_acquire on an empty pool fails and changes nothing."""
        pool = CountingResourcePool("ventilators", 0)

        assert pool.try_acquire() is False
        assert pool.try_acquire() is False
        assert pool.available() == 0
        assert pool.in_use == 0

    def test_try_acquire_takes_last_unit(self):
        pool = CountingResourcePool("ventilators", 1)

        assert pool.try_acquire() is True
        assert pool.available() == 0
        assert pool.try_acquire() is False

    def test_release_without_acquire_grows_capacity(self):
        """Release is never clamped to the initial capacity."""
        pool = CountingResourcePool("doctors", 1)

        pool.release()

        assert pool.available() == 2
        assert pool.in_use == 0

    def test_concurrent_acquire_release_is_consistent(self):
        """Many threads cycling acquire/release leave the pool intact."""
        pool = CountingResourcePool("nurses", 3)

        def cycle():
            for _ in range(200):
                pool.acquire()
                pool.release()

        threads = [threading.Thread(target=cycle) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10.0)

        assert pool.available() == 3
        assert pool.in_use == 0


class TestCapacityGrowth:
    """Tests for add_capacity and the capacity log."""

    def test_add_capacity(self):
        pool = CountingResourcePool("doctors", 3)

        added = pool.add_capacity(2, reason="shift_change")

        assert added == 2
        assert pool.available() == 5

    def test_add_zero_is_noop(self):
        pool = CountingResourcePool("doctors", 3)

        assert pool.add_capacity(0) == 0
        assert len(pool.capacity_log) == 1

    def test_add_capacity_wakes_waiter(self):
        pool = CountingResourcePool("doctors", 0)
        done, result = acquire_in_thread(pool)

        assert not done.wait(0.1)
        pool.add_capacity(1)

        assert done.wait(2.0)
        assert result == [True]

    def test_capacity_log(self):
        clock = iter([0.0, 10.0, 20.0])
        pool = CountingResourcePool("nurses", 2, clock=lambda: next(clock))

        pool.add_capacity(1, reason="shift_change")
        pool.acquire()
        pool.add_capacity(1)

        assert pool.capacity_log[0] == CapacityChangeEvent(0.0, 2, 2, "initial")
        assert pool.capacity_log[1] == CapacityChangeEvent(10.0, 2, 3, "shift_change")
        # Held units still count towards total capacity
        assert pool.capacity_log[2] == CapacityChangeEvent(20.0, 3, 4, "add_1")
        assert pool.get_capacity_timeline() == [(0.0, 2), (10.0, 3), (20.0, 4)]

    def test_metrics(self):
        pool = CountingResourcePool("exam_rooms", 2)
        pool.add_capacity(1)
        pool.add_capacity(1)

        metrics = pool.get_metrics()

        assert metrics["scale_up_events"] == 2
        assert metrics["units_added"] == 2
        assert metrics["initial_capacity"] == 2
        assert metrics["max_capacity_reached"] == 4


class TestShutdownAwareAcquire:
    """acquire(cancel=...) gives up only when no release can ever come."""

    def test_starved_pool_returns_false_on_stop(self):
        run_state = RunState()
        pool = CountingResourcePool("nurses", 0)
        run_state.add_listener(pool.wake_all)

        done, result = acquire_in_thread(pool, cancel=run_state)
        assert not done.wait(0.1)

        run_state.stop()

        assert done.wait(2.0)
        assert result == [False]
        assert pool.available() == 0

    def test_already_stopped_starved_pool(self):
        run_state = RunState()
        run_state.stop()
        pool = CountingResourcePool("nurses", 0)

        assert pool.acquire(cancel=run_state) is False

    def test_stopped_pool_with_capacity_still_grants(self):
        """Shutdown does not refuse units that are free."""
        run_state = RunState()
        run_state.stop()
        pool = CountingResourcePool("doctors", 1)

        assert pool.acquire(cancel=run_state) is True

    def test_waits_for_holder_after_stop(self):
        """While a unit is held, a waiter keeps waiting through shutdown."""
        run_state = RunState()
        pool = CountingResourcePool("doctors", 1)
        run_state.add_listener(pool.wake_all)
        pool.acquire()

        done, result = acquire_in_thread(pool, cancel=run_state)
        run_state.stop()

        assert not done.wait(0.2)

        pool.release()

        assert done.wait(2.0)
        assert result == [True]


class TestResourcePools:
    """Tests for the four-pool container."""

    def test_from_scenario(self):
        pools = ResourcePools.from_scenario(Scenario(n_doctors=4, n_ventilators=0))

        assert pools.snapshot() == {
            "doctors": 4,
            "nurses": 2,
            "exam_rooms": 2,
            "ventilators": 0,
        }

    def test_treatment_order(self):
        """Doctor, nurse, exam room: the same for every worker."""
        pools = ResourcePools.from_scenario(Scenario())

        assert [p.name for p in pools.treatment_order] == ["doctors", "nurses", "exam_rooms"]

    def test_get_pool(self):
        pools = ResourcePools.from_scenario(Scenario())

        assert pools.get_pool("nurses") is pools.nurses
        assert pools.get_pool("porters") is None
        assert set(pools.get_all_pools()) == {"doctors", "nurses", "exam_rooms", "ventilators"}

    def test_aggregated_metrics(self):
        pools = ResourcePools.from_scenario(Scenario())
        pools.doctors.add_capacity(1)

        metrics = pools.get_aggregated_metrics()

        assert metrics["doctors"]["units_added"] == 1
        assert metrics["ventilators"]["units_added"] == 0
