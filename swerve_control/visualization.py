"""
Visualization utilities for simulated swerve drive runs.

This module loads the CSV files written by DataCollector and plots:
- The odometry trajectory against simulated ground truth
- Per-module wheel speeds and steer angles over time
"""

from pathlib import Path
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .drive import MODULE_NAMES
from .plot_styles import (
    PLOT_BLUE,
    PLOT_CMAP,
    PLOT_CREAM,
    PLOT_DARK_BLUE,
    PLOT_ORANGE,
    PLOT_TAUPE,
    PLOT_YELLOW_ORANGE,
    add_legend,
    load_run_table,
    module_label,
    save_figure,
    style_axis,
)

MODULE_COLORS = (PLOT_ORANGE, PLOT_BLUE, PLOT_YELLOW_ORANGE, PLOT_TAUPE)
"""Line color per module (FL, FR, BL, BR)."""

PLOT_KINDS = ("trajectory", "modules")
"""Plots plot_run_summary can draw, in drawing order."""


def plot_trajectory(
    pose_data: Dict[str, np.ndarray],
    title: str = "Odometry Trajectory",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot estimated trajectory (x vs y) with ground truth overlaid.

    Args:
        pose_data: Dictionary from pose_data.csv ('timestamp', 'x_est', 'y_est',
            and optionally 'x_true', 'y_true').
        title: Plot title.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, ax = plt.subplots(figsize=(10, 8), facecolor=PLOT_DARK_BLUE)

    x = pose_data["x_est"]
    y = pose_data["y_est"]
    timestamps = pose_data["timestamp"]

    valid_mask = ~(np.isnan(x) | np.isnan(y))
    x = x[valid_mask]
    y = y[valid_mask]
    timestamps = timestamps[valid_mask]

    if len(timestamps) > 0:
        ax.plot(x, y, "-", color=PLOT_ORANGE, linewidth=1.5, alpha=0.6, label="Estimate", zorder=1)

        # Color by time
        scatter = ax.scatter(
            x, y, c=timestamps, cmap=PLOT_CMAP, s=12, alpha=0.8, linewidths=0, zorder=3
        )
        colorbar = plt.colorbar(scatter, ax=ax)
        colorbar.set_label("Time (s)", color=PLOT_CREAM)
        colorbar.ax.tick_params(colors=PLOT_CREAM)

        ax.plot(x[0], y[0], "o", color=PLOT_BLUE, markersize=8, label="Start", zorder=5,
                markeredgecolor="black")
        ax.plot(x[-1], y[-1], "o", color=PLOT_ORANGE, markersize=8, label="End", zorder=5,
                markeredgecolor="black")

    if "x_true" in pose_data and not np.all(np.isnan(pose_data["x_true"])):
        ax.plot(
            pose_data["x_true"],
            pose_data["y_true"],
            "--",
            color=PLOT_YELLOW_ORANGE,
            linewidth=2.0,
            alpha=0.9,
            label="Ground Truth",
            zorder=2,
        )

    style_axis(ax, title=title, xlabel="X Position (m)", ylabel="Y Position (m)")
    ax.set_aspect("equal", adjustable="datalim")
    add_legend(ax)
    plt.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_module_states(
    module_data: Dict[str, np.ndarray],
    title: str = "Module States",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot each module's wheel speed and steer angle over time.

    Args:
        module_data: Dictionary from module_data.csv.
        title: Plot title prefix.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, (ax_speed, ax_angle) = plt.subplots(2, 1, figsize=(12, 8), facecolor=PLOT_DARK_BLUE)

    timestamps = module_data["timestamp"]
    for name, color in zip(MODULE_NAMES, MODULE_COLORS):
        label = module_label(name)
        ax_speed.plot(timestamps, module_data[f"{name}_speed"], color=color, alpha=0.8, label=label)
        ax_angle.plot(
            timestamps, np.degrees(module_data[f"{name}_angle"]), color=color, alpha=0.8, label=label
        )

    style_axis(ax_speed, title=f"{title} - Wheel Speed", xlabel="Time (s)", ylabel="Speed (m/s)")
    style_axis(ax_angle, title=f"{title} - Steer Angle", xlabel="Time (s)", ylabel="Angle (deg)")
    add_legend(ax_speed, loc="upper right")
    add_legend(ax_angle, loc="upper right")
    plt.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_run_summary(
    run_dir: Path,
    save_plots: bool = False,
    show_plots: bool = True,
    plots: Sequence[str] = PLOT_KINDS,
) -> None:
    """Generate summary plots for a complete run.

    Args:
        run_dir: Directory containing pose_data.csv and module_data.csv.
        save_plots: If True, save plots to run directory.
        show_plots: If True, display plots interactively.
        plots: Which of PLOT_KINDS to draw.

    Raises:
        FileNotFoundError: If a CSV file needed by the selected plots is missing.
        ValueError: If a plot kind is unknown.
    """
    unknown = set(plots) - set(PLOT_KINDS)
    if unknown:
        raise ValueError(f"Unknown plot kinds: {sorted(unknown)}")

    run_name = run_dir.name
    if "trajectory" in plots:
        plot_trajectory(
            load_run_table(run_dir / "pose_data.csv"),
            title=f"Odometry Trajectory - {run_name}",
            save_path=run_dir / "trajectory.png" if save_plots else None,
        )
    if "modules" in plots:
        plot_module_states(
            load_run_table(run_dir / "module_data.csv"),
            title=f"Module States - {run_name}",
            save_path=run_dir / "module_states.png" if save_plots else None,
        )

    if show_plots:
        plt.show()
    else:
        plt.close("all")
