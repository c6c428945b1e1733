"""Shared plotting utilities and styles for swerve drive visualizations.

This module provides:
- The dark color scheme and the time colormap
- Loaders for the CSV tables and summary file of a run directory
- Axis, legend, and figure helpers

All visualization modules should import from this module to ensure consistency.
"""

import logging
from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.colors import LinearSegmentedColormap

from .config import (
    PLOT_BLUE,
    PLOT_CREAM,
    PLOT_DARK_BLUE,
    PLOT_ORANGE,
    PLOT_TAUPE,
    PLOT_YELLOW_ORANGE,
)

__all__ = [
    "PLOT_ORANGE",
    "PLOT_BLUE",
    "PLOT_CREAM",
    "PLOT_TAUPE",
    "PLOT_YELLOW_ORANGE",
    "PLOT_DARK_BLUE",
    "PLOT_CMAP",
    "load_run_table",
    "load_run_summary",
    "module_label",
    "style_axis",
    "add_legend",
    "save_figure",
]

# Orange -> blue, used to color trajectories by time
PLOT_CMAP = LinearSegmentedColormap.from_list("swerve", [PLOT_ORANGE, PLOT_BLUE])


# ============================================================================
# Run Data Loading
# ============================================================================


def load_run_table(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load one of a run's CSV tables as named float columns.

    Empty cells (e.g. ground truth on a real robot) load as NaN.

    Args:
        csv_path: Path to pose_data.csv, module_data.csv, or command_data.csv.

    Returns:
        Dictionary mapping column names to 1-D numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    table = np.genfromtxt(csv_path, delimiter=",", names=True, dtype=float)
    # A single data row comes back as a 0-d record
    return {name: np.atleast_1d(table[name]) for name in table.dtype.names}


def load_run_summary(run_dir: Path) -> Dict[str, str]:
    """Read the key: value lines of a run's summary.txt.

    Returns:
        Summary fields (scenario, position_error_m, heading_error_rad), or an
        empty dict if the run was interrupted before the summary was written.
    """
    summary_path = run_dir / "summary.txt"
    if not summary_path.exists():
        return {}

    fields = {}
    for line in summary_path.read_text().splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def module_label(name: str) -> str:
    """'front_left' -> 'Front Left'."""
    return name.replace("_", " ").title()


# ============================================================================
# Plot Styling Functions
# ============================================================================


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "") -> None:
    """Apply the dark theme, labels, and a dashed grid to an axis.

    Args:
        ax: Matplotlib axis to style.
        title: Plot title (optional).
        xlabel: X-axis label (optional).
        ylabel: Y-axis label (optional).
    """
    ax.set_facecolor(PLOT_DARK_BLUE)
    ax.set_title(title, fontweight="bold", color=PLOT_CREAM)
    ax.set_xlabel(xlabel, color=PLOT_CREAM)
    ax.set_ylabel(ylabel, color=PLOT_CREAM)
    ax.grid(True, color=PLOT_TAUPE, alpha=0.4, linestyle="--", linewidth=0.5)
    ax.tick_params(colors=PLOT_CREAM, which="both")
    for spine in ax.spines.values():
        spine.set_edgecolor(PLOT_TAUPE)


def add_legend(ax: Axes, loc: str = "best") -> None:
    """Add a legend in the dark theme; a no-op on axes without labelled artists."""
    if not ax.get_legend_handles_labels()[0]:
        return
    ax.legend(
        loc=loc,
        framealpha=0.9,
        facecolor=PLOT_DARK_BLUE,
        edgecolor=PLOT_TAUPE,
        labelcolor=PLOT_CREAM,
    )


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150) -> None:
    """Save a figure on its own background color and log where it went."""
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight", facecolor=fig.get_facecolor())
    logging.info(f"Saved figure to {filepath}")
