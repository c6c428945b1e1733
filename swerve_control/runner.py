#!/usr/bin/env python3
"""
Scenario runner for the simulated swerve drivetrain.

This module drives a SimulatedDrivetrain through a named scenario at the
configured control period, logs commands, poses, and module states with
DataCollector, and reports the final odometry error against ground truth.
Before the scenario starts it waits on the startup heading calibration
gate, exactly as a robot scheduler would before accepting world-relative
commands.
"""

import argparse
import logging
import math
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .config import TERM_BLUE, TERM_ORANGE, TERM_RESET, ConfigurationError, DriveConfig
from .data_collector import DataCollector
from .drive import DriveController
from .geometry import ChassisVelocity
from .heading import CalibrationState
from .simulation import SimulatedDrivetrain

Command = Tuple[float, float, float, bool]
"""Logged command: (vx, vy, omega, world_relative)."""


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


# ============================================================================
# Scenarios
# ============================================================================


@dataclass
class Scenario:
    """A timed sequence of drive commands.

    Attributes:
        name: Scenario name used on the command line.
        description: One-line description.
        duration: Run time in seconds.
        command: Called each cycle as command(controller, elapsed); issues
            the drive call and returns what it commanded for logging.
    """

    name: str
    description: str
    duration: float
    command: Callable[[DriveController, float], Command]


def _square(controller: DriveController, elapsed: float) -> Command:
    # 1 m legs at 1 m/s: forward, left, back, right
    legs = [(1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0)]
    leg = int(elapsed)
    if leg >= len(legs):
        controller.stop()
        return 0.0, 0.0, 0.0, False
    vx, vy = legs[leg]
    controller.drive_velocity(ChassisVelocity(vx, vy, 0.0))
    return vx, vy, 0.0, False


def _spin_drive(controller: DriveController, elapsed: float) -> Command:
    # Translate along world x while spinning, using shaped driver inputs
    if elapsed >= 4.0:
        controller.stop()
        return 0.0, 0.0, 0.0, True
    controller.drive(0.3, 0.0, 0.25, world_relative=True)
    return 0.3, 0.0, 0.25, True


def _circle(controller: DriveController, elapsed: float) -> Command:
    # World-relative circle with a constant heading
    vx = 0.2 * math.cos(0.5 * elapsed)
    vy = 0.2 * math.sin(0.5 * elapsed)
    controller.drive(vx, vy, 0.0, world_relative=True)
    return vx, vy, 0.0, True


def _lock(controller: DriveController, elapsed: float) -> Command:
    if elapsed < 1.5:
        controller.drive(0.5, 0.0, 0.0, world_relative=False)
        return 0.5, 0.0, 0.0, False
    controller.lock()
    return 0.0, 0.0, 0.0, False


SCENARIOS: Dict[str, Scenario] = {
    scenario.name: scenario
    for scenario in (
        Scenario("square", "Vehicle-relative 1 m square at 1 m/s", 4.5, _square),
        Scenario("spin", "World-relative translation while spinning", 4.5, _spin_drive),
        Scenario("circle", "World-relative circle at constant heading", 12.6, _circle),
        Scenario("lock", "Drive forward, then hold the X lock", 3.0, _lock),
    )
}


def wait_for_heading_calibration(sim: SimulatedDrivetrain) -> CalibrationState:
    """Tick the stationary drivetrain until the heading gate settles.

    Bounded by the gate's own timeout.

    Returns:
        The final calibration state (READY or FALLBACK); READY if no gate.
    """
    if sim.calibration is None:
        return CalibrationState.READY

    while sim.calibration.state is CalibrationState.PENDING:
        sim.tick()
        sim.step()
    return sim.calibration.state


def run_scenario(
    name: str,
    config: Optional[DriveConfig] = None,
    collector: Optional[DataCollector] = None,
    steer_rate: Optional[float] = None,
    calibrate_heading: bool = True,
) -> SimulatedDrivetrain:
    """Run a named scenario on a fresh simulated drivetrain.

    Args:
        name: Key into SCENARIOS.
        config: Drivetrain configuration (defaults to DriveConfig.default()).
        collector: Optional DataCollector (already set up) to log into.
        steer_rate: Simulated steer slew rate (rad/s); None snaps instantly.
        calibrate_heading: Gate world-relative driving on startup calibration.

    Returns:
        The simulated drivetrain after the run, for inspection.

    Raises:
        KeyError: If the scenario name is unknown.
    """
    scenario = SCENARIOS[name]
    sim = SimulatedDrivetrain(config, steer_rate=steer_rate, calibrate_heading=calibrate_heading)

    state = wait_for_heading_calibration(sim)
    logging.info(f"{TERM_BLUE}Heading calibration: {state.value} at t={sim.time:.2f}s{TERM_RESET}")

    start = sim.time
    last_command: Command = (0.0, 0.0, 0.0, False)

    def command(controller: DriveController, elapsed: float) -> None:
        nonlocal last_command
        last_command = scenario.command(controller, elapsed)

    def record(s: SimulatedDrivetrain) -> None:
        if collector is None:
            return
        t = s.time - start
        collector.log_command(t, *last_command)
        collector.log_pose(t, s.controller.get_pose(), s.true_pose)
        collector.log_modules(t, s.controller.get_module_states(), s.controller.get_module_positions())

    logging.info(f"Running scenario '{scenario.name}': {scenario.description}")
    sim.run(command, scenario.duration, on_cycle=record)

    # Fold the last simulated step into the estimate
    sim.tick()

    pose = sim.controller.get_pose()
    logging.info(
        f"{TERM_ORANGE}Final pose: x={pose.x:.3f}m y={pose.y:.3f}m "
        f"heading={math.degrees(pose.heading):.1f}deg{TERM_RESET}"
    )
    logging.info(
        f"Odometry error: {sim.position_error() * 1000:.1f}mm, "
        f"{math.degrees(sim.heading_error()):.2f}deg"
    )
    if collector is not None:
        collector.save_summary(scenario.name, sim.position_error(), sim.heading_error())

    return sim


def main(argv: Optional[List[str]] = None) -> None:
    """Run a simulated scenario from the command line.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    parser = argparse.ArgumentParser(
        description="Simulated swerve drive scenario runner with CSV data collection"
    )
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="square",
        help="Scenario to run (default: square)",
    )
    parser.add_argument(
        "--output-dir", type=str, default=".", help="Base directory for results (default: .)"
    )
    parser.add_argument("--no-log", action="store_true", help="Do not write CSV data")
    parser.add_argument(
        "--steer-rate",
        type=float,
        default=None,
        help="Simulated steer slew rate in rad/s (default: instantaneous)",
    )
    parser.add_argument(
        "--no-calibration",
        action="store_true",
        help="Skip the startup heading calibration gate",
    )
    parser.add_argument(
        "--plot", action="store_true", help="Save trajectory and module plots after the run"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    args = parser.parse_args(argv)
    if args.plot and args.no_log:
        parser.error("--plot needs the CSV data; drop --no-log")

    setup_logging(args.verbose)

    try:
        config = DriveConfig.default()
    except ConfigurationError as e:
        logging.error(f"Invalid drivetrain configuration: {e}")
        sys.exit(1)

    calibrate = not args.no_calibration
    if args.no_log:
        run_scenario(args.scenario, config, None, args.steer_rate, calibrate)
        return

    with DataCollector(args.output_dir) as collector:
        run_scenario(args.scenario, config, collector, args.steer_rate, calibrate)

    if args.plot:
        from .visualization import plot_run_summary

        plot_run_summary(collector.run_dir, save_plots=True, show_plots=False)
