"""Core data types for Outbreak-Sim.

This module is the SINGLE SOURCE OF TRUTH for:
  - POINT_DTYPE: NumPy structured array dtype for grid points
  - SimState enumeration
  - NEVER_INFECTED sentinel
  - StepSummary record passed to history and plotting

All modules import these types from here. No other module defines point fields.
"""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class SimState(IntEnum):
    """Simulation lifecycle.

    IDLE    → RUNNING:  start()
    RUNNING → IDLE:     stop(), reset(), or empty frontier
    """
    IDLE    = 0
    RUNNING = 1


NEVER_INFECTED = -1  # infection_step for points never infected


# ═══════════════════════════════════════════════════════════════════════
# POINT_DTYPE: canonical structured array for grid points
# ═══════════════════════════════════════════════════════════════════════

POINT_DTYPE = np.dtype([
    # --- Input (LOADER writes, never mutated afterwards) ---
    ('lon',            np.float64),   #  8 B, longitude (decimal degrees)
    ('lat',            np.float64),   #  8 B, latitude (decimal degrees)
    ('risk',           np.float64),   #  8 B, suitability score ∈ [0, 1]

    # --- Infection (SIMULATOR writes) ---
    ('infected',       np.bool_),     #  1 B, infection flag, monotonic within a run
    ('infection_step', np.int32),     #  4 B, step of infection, NEVER_INFECTED if none
])


def allocate_points(n: int) -> np.ndarray:
    """Allocate an uninfected point array.

    Args:
        n: Number of grid points.

    Returns:
        Structured array of shape (n,) with POINT_DTYPE; infection_step
        set to NEVER_INFECTED.
    """
    points = np.zeros(n, dtype=POINT_DTYPE)
    points['infection_step'] = NEVER_INFECTED
    return points


def make_points(lons, lats, risks) -> np.ndarray:
    """Build a point collection from parallel coordinate/risk arrays.

    Raises:
        ValueError: On length mismatch, non-finite values, or risk outside [0, 1].
    """
    lons = np.asarray(lons, dtype=np.float64)
    lats = np.asarray(lats, dtype=np.float64)
    risks = np.asarray(risks, dtype=np.float64)
    if not (lons.shape == lats.shape == risks.shape) or lons.ndim != 1:
        raise ValueError(
            f"lons, lats, risks must be 1-D with equal length, got "
            f"{lons.shape}, {lats.shape}, {risks.shape}"
        )
    if not (np.all(np.isfinite(lons)) and np.all(np.isfinite(lats))):
        raise ValueError("coordinates must be finite")
    if not np.all(np.isfinite(risks)) or np.any(risks < 0.0) or np.any(risks > 1.0):
        raise ValueError("risk values must lie in [0, 1]")

    points = allocate_points(len(lons))
    points['lon'] = lons
    points['lat'] = lats
    points['risk'] = risks
    return points


def check_point_invariants(points: np.ndarray, current_step: int) -> None:
    """Assert the infected/infection_step invariant.

    Infected points carry infection_step in [0, current_step]; uninfected
    points carry NEVER_INFECTED.

    Raises:
        AssertionError: Describing the first offending point.
    """
    infected = points['infected']
    steps = points['infection_step']

    bad = np.flatnonzero(infected & ((steps < 0) | (steps > current_step)))
    assert bad.size == 0, (
        f"point {bad[0]} infected with infection_step={steps[bad[0]]} "
        f"outside [0, {current_step}]"
    )
    bad = np.flatnonzero(~infected & (steps != NEVER_INFECTED))
    assert bad.size == 0, (
        f"point {bad[0]} uninfected but infection_step={steps[bad[0]]}"
    )


# ═══════════════════════════════════════════════════════════════════════
# STEP RECORDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class StepSummary:
    """Counts after one step (step 0 = outbreak seeding)."""
    step: int
    n_new: int
    n_infected: int
    n_uninfected: int

    @property
    def status(self) -> str:
        return (f"Step {self.step}: {self.n_infected} infected, "
                f"{self.n_uninfected} uninfected")
