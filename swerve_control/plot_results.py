#!/usr/bin/env python3
"""
Plot and compare simulated swerve drive runs from the results directory.

Each run directory written by DataCollector holds the CSV tables and a
summary.txt with the scenario name and the final odometry error. This CLI
lists runs with those errors, picks a run by name, by scenario, or the most
recent one, and draws the trajectory and/or module state plots for it.
"""

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional

from .config import TERM_BLUE, TERM_ORANGE, TERM_RESET
from .plot_styles import load_run_summary
from .runner import SCENARIOS
from .visualization import PLOT_KINDS, plot_run_summary


def list_run_dirs(results_dir: Path) -> List[Path]:
    """Return run directories sorted oldest to newest.

    Raises:
        FileNotFoundError: If the results directory does not exist.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    return sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))


def find_latest_run(results_dir: Path, scenario: Optional[str] = None) -> Path:
    """Find the most recent run, optionally restricted to one scenario.

    Args:
        results_dir: Path to the results directory.
        scenario: Only consider runs whose summary names this scenario.

    Raises:
        FileNotFoundError: If no matching run directory exists.
    """
    run_dirs = list_run_dirs(results_dir)
    if scenario is not None:
        run_dirs = [d for d in run_dirs if load_run_summary(d).get("scenario") == scenario]
    if not run_dirs:
        which = f"'{scenario}' runs" if scenario else "run directories"
        raise FileNotFoundError(f"No {which} found in {results_dir}")
    return run_dirs[-1]


def describe_run(run_dir: Path) -> str:
    """One line with the run's scenario and final odometry error."""
    summary = load_run_summary(run_dir)
    if not summary:
        return f"{run_dir.name}  (no summary, run interrupted?)"

    try:
        position_mm = float(summary["position_error_m"]) * 1000
        heading_deg = math.degrees(float(summary["heading_error_rad"]))
    except (KeyError, ValueError):
        return f"{run_dir.name}  {summary.get('scenario', '?')}  (malformed summary)"
    return (
        f"{run_dir.name}  {summary.get('scenario', '?'):<8} "
        f"position error {position_mm:8.2f}mm  heading error {heading_deg:7.3f}deg"
    )


def list_available_runs(results_dir: Path) -> None:
    """Log every run with its scenario and final odometry error."""
    try:
        run_dirs = list_run_dirs(results_dir)
    except FileNotFoundError as e:
        logging.error(str(e))
        return

    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return

    logging.info(f"{TERM_BLUE}Runs in {results_dir}:{TERM_RESET}")
    for run_dir in run_dirs:
        logging.info(f"  {describe_run(run_dir)}")


def main(argv: Optional[List[str]] = None) -> None:
    """Plot a run from the command line.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Plot and compare simulated swerve drive runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List runs with their scenario and final odometry error
  python -m swerve_control.plot_results --list

  # Trajectory of the most recent 'spin' run
  python -m swerve_control.plot_results --scenario spin --plot trajectory

  # Save module state plots of one run without opening a window
  python -m swerve_control.plot_results --run run_20260101_120000 --plot modules --save --no-show
        """,
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--run", type=str, default=None, help="Run directory name to plot (default: most recent)"
    )
    selection.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Plot the most recent run of this scenario",
    )
    parser.add_argument(
        "--plot",
        choices=[*PLOT_KINDS, "all"],
        default="all",
        help="Which plots to draw (default: all)",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument(
        "--save", action="store_true", help="Save plots as PNG files in the run directory"
    )
    parser.add_argument(
        "--no-show", action="store_true", help="Do not display plots interactively"
    )
    parser.add_argument(
        "--list", action="store_true", help="List runs with their odometry error and exit"
    )

    args = parser.parse_args(argv)
    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir, args.scenario)
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    logging.info(f"{TERM_BLUE}Plotting {describe_run(run_dir)}{TERM_RESET}")
    plots = PLOT_KINDS if args.plot == "all" else (args.plot,)

    try:
        plot_run_summary(run_dir, save_plots=args.save, show_plots=not args.no_show, plots=plots)
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        sys.exit(1)

    if args.save:
        logging.info(f"{TERM_ORANGE}✓ Saved {', '.join(plots)} plots to {run_dir}/{TERM_RESET}")


if __name__ == "__main__":
    main()
