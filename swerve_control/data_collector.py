"""Data collection and CSV logging for simulated swerve drive runs.

This module provides CSV data logging for:
- Drive commands (requested chassis velocity and frame)
- Pose estimates alongside simulated ground truth
- Per-module states (speed, angle, distance)
- Final run summary (position and heading error)
"""

import csv
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Sequence, TextIO

from .config import TERM_BLUE, TERM_RESET
from .drive import MODULE_NAMES
from .geometry import Pose, WheelPosition, WheelState


class DataCollector:
    """Manages CSV file creation and logging for swerve drive runs.

    This class handles all data logging responsibilities:
    - Creates timestamped output directories
    - Initializes CSV files with headers
    - Writes command, pose, and module data
    - Ensures proper cleanup on shutdown

    Attributes:
        run_dir: Directory path for this run's output files.
        command_csv_file: File handle for drive command CSV.
        pose_csv_file: File handle for pose CSV.
        module_csv_file: File handle for module state CSV.
        summary_output_path: Path for final summary text file.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        # CSV file handles
        self.command_csv_file: Optional[TextIO] = None
        self.command_csv_writer: Any = None
        self.pose_csv_file: Optional[TextIO] = None
        self.pose_csv_writer: Any = None
        self.module_csv_file: Optional[TextIO] = None
        self.module_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.command_output_path: Path = self.run_dir / "command_data.csv"
        self.pose_output_path: Path = self.run_dir / "pose_data.csv"
        self.module_output_path: Path = self.run_dir / "module_data.csv"
        self.summary_output_path: Path = self.run_dir / "summary.txt"

    def setup(self) -> None:
        """Initialize CSV files with headers.

        Must be called before writing data.
        """
        self.command_csv_file = open(self.command_output_path, "w", newline="")
        self.command_csv_writer = csv.writer(self.command_csv_file)
        self.command_csv_writer.writerow(["timestamp", "vx", "vy", "omega", "world_relative"])
        self.command_csv_file.flush()

        self.pose_csv_file = open(self.pose_output_path, "w", newline="")
        self.pose_csv_writer = csv.writer(self.pose_csv_file)
        self.pose_csv_writer.writerow(
            ["timestamp", "x_est", "y_est", "heading_est", "x_true", "y_true", "heading_true"]
        )
        self.pose_csv_file.flush()

        # One speed/angle/distance triple per module
        module_headers = ["timestamp"]
        for name in MODULE_NAMES:
            module_headers.extend([f"{name}_speed", f"{name}_angle", f"{name}_distance"])
        self.module_csv_file = open(self.module_output_path, "w", newline="")
        self.module_csv_writer = csv.writer(self.module_csv_file)
        self.module_csv_writer.writerow(module_headers)
        self.module_csv_file.flush()

        logging.info(
            f"{TERM_BLUE}✓ Initialized data collection to results/{self.run_dir.name}/{TERM_RESET}"
        )

    def log_command(
        self, timestamp: float, vx: float, vy: float, omega: float, world_relative: bool
    ) -> None:
        """Log a drive command to CSV.

        Args:
            timestamp: Simulated time (seconds).
            vx: Forward command.
            vy: Leftward command.
            omega: Rotation command.
            world_relative: Frame flag of the command.
        """
        if self.command_csv_writer:
            self.command_csv_writer.writerow(
                [f"{timestamp:.3f}", vx, vy, omega, int(world_relative)]
            )
            self.command_csv_file.flush()

    def log_pose(self, timestamp: float, estimate: Pose, truth: Optional[Pose] = None) -> None:
        """Log the pose estimate (and ground truth when available) to CSV.

        Args:
            timestamp: Simulated time (seconds).
            estimate: Odometry pose.
            truth: Ground-truth pose, if known.
        """
        if self.pose_csv_writer:
            truth_values = ["", "", ""] if truth is None else [truth.x, truth.y, truth.heading]
            self.pose_csv_writer.writerow(
                [f"{timestamp:.3f}", estimate.x, estimate.y, estimate.heading, *truth_values]
            )
            self.pose_csv_file.flush()

    def log_modules(
        self,
        timestamp: float,
        states: Sequence[WheelState],
        positions: Sequence[WheelPosition],
    ) -> None:
        """Log module states and distances to CSV.

        Args:
            timestamp: Simulated time (seconds).
            states: Measured module states (FL, FR, BL, BR).
            positions: Measured module positions (FL, FR, BL, BR).
        """
        if self.module_csv_writer:
            row: List[Any] = [f"{timestamp:.3f}"]
            for state, position in zip(states, positions):
                row.extend([state.speed, state.angle, position.distance])
            self.module_csv_writer.writerow(row)
            self.module_csv_file.flush()

    def save_summary(self, scenario: str, position_error: float, heading_error: float) -> None:
        """Write the run summary to a text file.

        Args:
            scenario: Scenario name.
            position_error: Final estimated-vs-true position error (meters).
            heading_error: Final estimated-vs-true heading error (radians).
        """
        with open(self.summary_output_path, "w") as f:
            f.write(f"scenario: {scenario}\n")
            f.write(f"position_error_m: {position_error:.6f}\n")
            f.write(f"heading_error_rad: {heading_error:.6f}\n")

    def cleanup(self) -> None:
        """Close all CSV files and log final output location."""
        if self.command_csv_file:
            self.command_csv_file.close()
        if self.pose_csv_file:
            self.pose_csv_file.close()
        if self.module_csv_file:
            self.module_csv_file.close()

        self.command_csv_writer = None
        self.pose_csv_writer = None
        self.module_csv_writer = None

        logging.info(f"{TERM_BLUE}✓ Saved run data to results/{self.run_dir.name}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        """Context manager entry point.

        Returns:
            Self reference for use in with statement.
        """
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called."""
        self.cleanup()
