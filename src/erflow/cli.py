"""Command line entry point: run one session and print what happens."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from erflow.core.config import get_default_config_path, load_scenario
from erflow.core.errors import ConfigError, SessionError
from erflow.core.scenario import Scenario
from erflow.display.console import ConsoleTable, TABLE_WIDTH
from erflow.model.session import SessionController

logger = logging.getLogger(__name__)

# CLI flag -> Scenario field
OVERRIDES = {
    "duration": "session_duration",
    "workers": "n_workers",
    "doctors": "n_doctors",
    "nurses": "n_nurses",
    "exam_rooms": "n_exam_rooms",
    "ventilators": "n_ventilators",
    "seed": "random_seed",
    "time_scale": "time_scale",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erflow",
        description="Emergency room admission and dispatch simulation",
    )
    parser.add_argument("--config", type=Path, help="Scenario file (.yaml, .yml or .json)")
    parser.add_argument("--duration", type=float, help="Session length in time units (default: 30)")
    parser.add_argument("--workers", type=int, help="Treatment worker threads (default: 3)")
    parser.add_argument("--doctors", type=int, help="Initial doctors (default: 3)")
    parser.add_argument("--nurses", type=int, help="Initial nurses (default: 2)")
    parser.add_argument("--exam-rooms", type=int, help="Initial exam rooms (default: 2)")
    parser.add_argument("--ventilators", type=int, help="Initial ventilators (default: 1)")
    parser.add_argument("--seed", type=int, help="Random seed (default: 42)")
    parser.add_argument("--time-scale", type=float, help="Seconds per time unit (default: 1.0)")
    parser.add_argument("--output", type=Path, help="Write every event to this CSV file")
    parser.add_argument("--quiet", action="store_true", help="Do not print the event table")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser


def scenario_from_args(args: argparse.Namespace) -> Scenario:
    """Scenario file (or defaults) with command line overrides applied."""
    config_path = args.config or get_default_config_path()
    base = load_scenario(config_path) if config_path else Scenario()

    params = base.to_dict()
    for flag, field_name in OVERRIDES.items():
        value = getattr(args, flag)
        if value is not None:
            params[field_name] = value
    return Scenario(**params)


def print_summary(results: dict, stream=None) -> None:
    stream = stream or sys.stdout
    lines = [
        "-" * TABLE_WIDTH,
        f"Arrivals: {results['arrivals']}  Treated: {results['treated']}  "
        f"Abandoned: {results['abandoned']}",
        f"Mean wait: {results['mean_wait']:.2f}  P95 wait: {results['p95_wait']:.2f}",
        f"Ventilator shortages: {results['ventilator_unavailable']}  "
        f"Shift changes: {results['capacity_additions']}  Breaks: {results['breaks']}",
        f"Final availability: {results['final_capacity']}",
    ]
    stream.write("\n".join(lines) + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s",
    )

    try:
        scenario = scenario_from_args(args)
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    sinks = []
    table = None
    if not args.quiet:
        table = ConsoleTable()
        sinks.append(table)

    controller = SessionController(scenario, sinks)
    print("Hospital Emergency Room Simulation Started...")
    if table is not None:
        table.print_header()

    try:
        results = controller.run()
    except KeyboardInterrupt:
        controller.stop()
        controller.join()
        results = controller.results()
    except SessionError as e:
        logger.error(str(e))
        return 1

    print("Hospital Emergency Room Simulation Ended.")
    print_summary(results)

    if args.output:
        controller.collector.to_dataframe().to_csv(args.output, index=False)
        logger.info(f"Wrote {len(controller.collector.events)} events to {args.output}")
    return 0
