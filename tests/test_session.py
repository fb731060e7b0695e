"""Tests for SessionController and run_session."""

import pytest

from conftest import FAST_TIME_SCALE, JOIN_TIMEOUT
from erflow import SessionController, run_session
from erflow.core.entities import EventStatus, PriorityLevel
from erflow.core.errors import SessionError
from erflow.core.scenario import Scenario
from erflow.model.patient import Patient


class TestRunSession:
    """Full sessions at test speed."""

    def test_reference_session_completes(self, fast_scenario):
        results = run_session(fast_scenario)

        assert results["session_duration"] == 30.0
        assert results["arrivals"] >= 1
        # Every admitted patient was treated before the threads exited
        assert results["treated"] + results["abandoned"] == results["arrivals"]
        assert results["abandoned"] == 0
        assert sorted(results["dispatch_order"]) == list(range(1, results["arrivals"] + 1))

    def test_results_keys(self, fast_scenario):
        results = run_session(fast_scenario)

        for key in (
            "arrivals", "treated", "abandoned", "ventilator_unavailable",
            "capacity_additions", "breaks", "mean_wait", "p95_wait",
            "elapsed", "dispatch_order", "final_capacity", "capacity_metrics",
        ):
            assert key in results

    def test_pools_restored_after_session(self, fast_scenario):
        """All units are back once the session is quiescent."""
        controller = SessionController(fast_scenario)
        controller.run()

        added = {
            name: m["units_added"]
            for name, m in controller.pools.get_aggregated_metrics().items()
        }
        assert controller.pools.snapshot() == {
            "doctors": 3 + added["doctors"],
            "nurses": 2 + added["nurses"],
            "exam_rooms": 2 + added["exam_rooms"],
            "ventilators": 1,
        }

    def test_extra_sinks_receive_events(self, fast_scenario):
        received = []

        run_session(fast_scenario, sinks=[received.append])

        assert any(e.status is EventStatus.ARRIVED for e in received)

    def test_failing_sink_does_not_break_session(self, fast_scenario):
        def broken(event):
            raise RuntimeError("display unplugged")

        results = run_session(fast_scenario, sinks=[broken])

        assert results["arrivals"] >= 1
        assert results["abandoned"] == 0

    def test_disabled_background_processes(self):
        scenario = Scenario(
            time_scale=FAST_TIME_SCALE,
            session_duration=5.0,
            enable_arrivals=False,
            enable_capacity_adjuster=False,
            enable_staff_breaks=False,
        )
        controller = SessionController(scenario)

        results = controller.run()

        assert results["arrivals"] == 0
        assert sorted(controller.group.task_names) == ["doctor-1", "doctor-2", "doctor-3"]


class TestLifecycle:
    """start / stop / join."""

    def test_stop_before_duration(self, fast_scenario):
        controller = SessionController(fast_scenario.clone_with_seed(1))
        controller.start()

        assert controller.stop() is True
        assert controller.stop() is False
        assert controller.join(JOIN_TIMEOUT) == []
        assert not controller.run_state.is_running

    def test_start_twice_rejected(self, fast_scenario):
        controller = SessionController(fast_scenario)
        controller.start()
        try:
            with pytest.raises(SessionError, match="already started"):
                controller.start()
        finally:
            controller.stop()
            controller.join(JOIN_TIMEOUT)

    def test_start_after_stop_rejected(self, fast_scenario):
        controller = SessionController(fast_scenario)
        controller.stop()

        with pytest.raises(SessionError, match="already stopped"):
            controller.start()

    def test_queued_patients_drained_on_stop(self):
        scenario = Scenario(
            time_scale=FAST_TIME_SCALE,
            n_workers=1,
            enable_arrivals=False,
            enable_capacity_adjuster=False,
            enable_staff_breaks=False,
        )
        controller = SessionController(scenario)
        controller.queue.push(Patient.admit(1, PriorityLevel.LOW))
        controller.queue.push(Patient.admit(2, PriorityLevel.HIGH))

        controller.start()
        controller.stop()
        assert controller.join(JOIN_TIMEOUT) == []

        assert controller.collector.dispatch_order == [2, 1]
        assert controller.collector.treated == 2

    def test_crashed_thread_raises_session_error(self, fast_scenario):
        controller = SessionController(fast_scenario)

        def explode():
            raise RuntimeError("boom")

        controller.arrivals.run = explode

        with pytest.raises(SessionError, match="arrivals"):
            controller.run()
        assert controller.group.alive() == []
