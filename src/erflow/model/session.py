"""Session control: start everything, run for a while, shut down cleanly."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from erflow.core.errors import SessionError
from erflow.core.scenario import Scenario
from erflow.model.admission_queue import AdmissionQueue
from erflow.model.background import ArrivalGenerator, CapacityAdjuster, StaffBreakSimulator
from erflow.model.clock import SessionClock
from erflow.model.events import EventBus, EventSink
from erflow.model.resource_pool import ResourcePools
from erflow.model.run_state import RunState
from erflow.model.tasks import TaskGroup
from erflow.model.workers import TreatmentWorkerPool
from erflow.results.collector import ResultsCollector

logger = logging.getLogger(__name__)


class SessionController:
    """Owns one session: its run state, pools, queue and threads.

    Shutdown is cooperative. ``stop()`` flips the run state and wakes every
    thread blocked on the queue or a pool; workers drain the queue before
    exiting, background loops exit after their current sleep. ``join()``
    waits for all of it.

    Attributes:
        scenario: Session configuration.
        clock: Session time source.
        run_state: Shared stop signal.
        pools: Doctors, nurses, exam rooms and ventilators.
        queue: Admission queue.
        bus: Event bus every component publishes to.
        collector: Results collector subscribed to the bus.
    """

    def __init__(self, scenario: Scenario, sinks: Iterable[EventSink] = ()):
        self.scenario = scenario
        self.clock = SessionClock(scenario.time_scale)
        self.run_state = RunState()
        self.pools = ResourcePools.from_scenario(scenario, clock=self.clock.now)
        self.queue = AdmissionQueue(self.run_state)
        self.run_state.add_listener(self.pools.wake_all)

        self.bus = EventBus(self.pools, self.clock.now)
        self.collector = ResultsCollector()
        self.bus.subscribe(self.collector.record)
        for sink in sinks:
            self.bus.subscribe(sink)

        self.group = TaskGroup(self.run_state)
        self.workers = TreatmentWorkerPool(
            scenario.n_workers, self.queue, self.pools, self.run_state, self.bus,
            self.clock.sleep, treatment_time=scenario.treatment_time,
        )
        self.arrivals = ArrivalGenerator(
            self.queue, self.run_state, self.bus, self.clock.sleep,
            scenario.rng_arrivals, scenario.rng_priority,
            arrival_min=scenario.arrival_min, arrival_max=scenario.arrival_max,
        )
        self.adjuster = CapacityAdjuster(
            self.queue, self.pools, self.run_state, self.bus, self.clock.sleep,
            scenario.rng_capacity, interval=scenario.adjust_interval,
        )
        self.breaks = StaffBreakSimulator(
            self.pools, self.run_state, self.bus, self.clock.sleep,
            interval=scenario.break_interval, duration=scenario.break_duration,
        )
        self._started = False

    def start(self) -> None:
        """Start the workers and the enabled background processes."""
        if self._started:
            raise SessionError("Session already started")
        if not self.run_state.is_running:
            raise SessionError("Session already stopped")
        self._started = True
        self.clock.restart()

        logger.info(
            f"Session started: {self.scenario.n_workers} worker(s), "
            f"pools {self.pools.snapshot()}"
        )
        self.workers.start(self.group)
        if self.scenario.enable_arrivals:
            self.group.spawn("arrivals", self.arrivals.run)
        if self.scenario.enable_capacity_adjuster:
            self.group.spawn("capacity-adjuster", self.adjuster.run)
        if self.scenario.enable_staff_breaks:
            self.group.spawn("staff-breaks", self.breaks.run)

    def stop(self) -> bool:
        """Signal shutdown. Returns False if already stopped."""
        stopped = self.run_state.stop()
        if stopped:
            logger.info(f"Session stopping at t={self.clock.now():.1f}, {len(self.queue)} patient(s) waiting")
        return stopped

    def join(self, timeout: Optional[float] = None) -> List[str]:
        """Wait for every thread. Returns names of threads still running."""
        still_running = self.group.join(timeout)
        if still_running:
            logger.warning(f"Threads still running after join: {still_running}")
        else:
            logger.info("Session ended, all threads joined")
        return still_running

    def run(self) -> Dict[str, Any]:
        """Run a full session: start, wait, stop, join.

        Returns early if ``stop()`` is called from elsewhere.

        Returns:
            Results dictionary (see ``results``).

        Raises:
            SessionError: If any thread crashed.
        """
        self.start()
        self.run_state.wait(self.scenario.session_seconds)
        self.stop()
        self.join()

        if self.group.failures:
            names = ", ".join(f.task_name for f in self.group.failures)
            raise SessionError(f"Session thread(s) failed: {names}") from self.group.failures[0].error
        return self.results()

    def results(self) -> Dict[str, Any]:
        """Summary of the session so far.

        Returns:
            Dictionary containing the collector's metrics plus:
            - session_duration: Configured length (time units)
            - elapsed: Session time actually elapsed
            - dispatch_order: Patient ids in treatment start order
            - final_capacity: Available units per pool
            - capacity_metrics: Per-pool capacity change summary
        """
        results = self.collector.compute_metrics()
        results["session_duration"] = self.scenario.session_duration
        results["elapsed"] = self.clock.now()
        results["dispatch_order"] = list(self.collector.dispatch_order)
        results["final_capacity"] = self.pools.snapshot()
        results["capacity_metrics"] = self.pools.get_aggregated_metrics()
        return results


def run_session(scenario: Scenario, sinks: Iterable[EventSink] = ()) -> Dict[str, Any]:
    """Execute a single session.

    Args:
        scenario: Scenario configuration with all parameters.
        sinks: Extra event sinks (e.g. a console table).

    Returns:
        Results dictionary from ``SessionController.results``.
    """
    return SessionController(scenario, sinks).run()
