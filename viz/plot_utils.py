"""Reusable matplotlib plotting functions for Outbreak-Sim.

Each function takes a finished run (OutbreakResult or SnapshotRecorder)
and returns a matplotlib Figure. Designed for static PNG export.

Usage:
    result = run_outbreak(points, config, seed=7)
    fig = plot_epidemic_curve(result)
    fig.savefig("curve.png", dpi=150, bbox_inches="tight")
"""

from __future__ import annotations

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from outbreak_sim.simulator import OutbreakResult
from outbreak_sim.snapshots import SnapshotRecorder


# ═══════════════════════════════════════════════════════════════════════
# STYLE CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

CURVE_COLORS = {"new": "#fc8d62", "cumulative": "#e41a1c", "susceptible": "#888888"}


def _style_axis(ax, xlabel: str = "", ylabel: str = "", title: str = ""):
    """Apply consistent styling to an axis."""
    ax.set_xlabel(xlabel, fontsize=10)
    ax.set_ylabel(ylabel, fontsize=10)
    if title:
        ax.set_title(title, fontsize=12, fontweight="bold")
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.tick_params(labelsize=9)


# ═══════════════════════════════════════════════════════════════════════
# PLOTS
# ═══════════════════════════════════════════════════════════════════════

def plot_epidemic_curve(result: OutbreakResult) -> plt.Figure:
    """New infections per step (bars) with cumulative infected (line).

    Args:
        result: Finished headless run.

    Returns:
        matplotlib Figure.
    """
    df = result.to_dataframe()
    fig, ax1 = plt.subplots(figsize=(10, 4))

    ax1.bar(df["step"], df["n_new"], width=0.7, color=CURVE_COLORS["new"],
            alpha=0.8, label="New infections")
    _style_axis(ax1, "Step", "New infections",
                f"Epidemic curve: seed {result.seed}, point {result.seed_index}")

    ax2 = ax1.twinx()
    ax2.plot(df["step"], df["n_infected"], color=CURVE_COLORS["cumulative"],
             linewidth=2, label="Cumulative infected")
    ax2.set_ylabel("Cumulative infected", fontsize=10)
    ax2.set_ylim(0, len(result.points) * 1.05)
    ax2.spines["top"].set_visible(False)

    handles = ax1.get_legend_handles_labels()
    handles2 = ax2.get_legend_handles_labels()
    ax1.legend(handles[0] + handles2[0], handles[1] + handles2[1],
               loc="upper left", fontsize=8, framealpha=0.9)
    ax1.set_xlim(-0.5, max(1, result.final_step) + 0.5)

    fig.tight_layout()
    return fig


def plot_snapshot_counts(recorder: SnapshotRecorder) -> plt.Figure:
    """Infected vs. uninfected counts for each recorded frame."""
    counts = recorder.infected_counts()
    n_points = len(recorder.lon) if recorder.lon is not None else 0
    frames = np.arange(len(counts))

    fig, ax = plt.subplots(figsize=(8, 3.5))
    ax.stackplot(frames, counts, n_points - counts,
                 colors=[CURVE_COLORS["cumulative"], CURVE_COLORS["susceptible"]],
                 labels=["Infected", "Uninfected"], alpha=0.7)
    _style_axis(ax, "Frame", "Points", "Infection state per frame")
    ax.legend(loc="center right", fontsize=8, framealpha=0.9)
    ax.set_xlim(0, max(1, len(counts) - 1))

    fig.tight_layout()
    return fig
