"""Outbreak simulator: seeding, frontier propagation, and run lifecycle.

One OutbreakSimulator owns one point collection and runs at most one
outbreak at a time:

  IDLE ──start()──▶ RUNNING ──stop() / reset() / empty frontier──▶ IDLE

Step rule:
  1. current_step += 1
  2. frontier = points infected at current_step - 1
  3. empty frontier → run complete (the only termination condition)
  4. each uninfected point within the radius of a frontier point is
     infected independently with p = spread.base_prob + spread.risk_weight × risk

Every mutating call (reset, start, step) hands the collection and a
status string to the renderer callback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from outbreak_sim.config import OutbreakConfig, default_config
from outbreak_sim.rng import create_rng_hierarchy
from outbreak_sim.scheduling import IntervalTicker
from outbreak_sim.spatial import neighbors_within
from outbreak_sim.types import (
    NEVER_INFECTED,
    POINT_DTYPE,
    SimState,
    StepSummary,
)


Renderer = Callable[[np.ndarray, str], None]


class OutbreakSimulator:
    """Risk-weighted outbreak simulation over a fixed point grid.

    Args:
        points: POINT_DTYPE array; mutated in place, never resized.
        config: OutbreakConfig; default if None.
        rng: A dict of streams from create_rng_hierarchy(), a single
            generator-like object (anything with integers() and random())
            used for both seeding and spread, or None to build streams
            from config.simulation.seed.
        renderer: Optional callable(points, status).
        ticker_factory: callable(interval_ms, callback) -> ticker with
            start()/cancel()/tick()/run(). Defaults to IntervalTicker.
    """

    def __init__(
        self,
        points: np.ndarray,
        config: Optional[OutbreakConfig] = None,
        rng=None,
        renderer: Optional[Renderer] = None,
        ticker_factory=None,
    ):
        if points.dtype != POINT_DTYPE:
            raise ValueError("points must be a POINT_DTYPE array")
        if len(points) == 0:
            raise ValueError("cannot simulate an empty point collection")

        self.points = points
        self.config = config if config is not None else default_config()
        self.renderer = renderer
        self._ticker_factory = ticker_factory or IntervalTicker
        self._ticker = None

        if rng is None:
            rng = create_rng_hierarchy(self.config.simulation.seed)
        if isinstance(rng, dict):
            self._outbreak_rng = rng['outbreak']
            self._spread_rng = rng['spread']
        else:
            self._outbreak_rng = self._spread_rng = rng

        self.state = SimState.IDLE
        self.current_step = 0
        self.speed_ms = self.config.simulation.speed_ms
        self.seed_index: Optional[int] = None
        self.seed_trials = 0
        self.history: List[StepSummary] = []

    # ── queries ────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self.state == SimState.RUNNING

    def counts(self) -> Tuple[int, int]:
        """(n_infected, n_uninfected)."""
        n_inf = int(np.count_nonzero(self.points['infected']))
        return n_inf, len(self.points) - n_inf

    def frontier(self) -> np.ndarray:
        """Indices infected in exactly the previous step."""
        return np.flatnonzero(
            self.points['infected']
            & (self.points['infection_step'] == self.current_step - 1)
        )

    # ── lifecycle ──────────────────────────────────────────────────────

    def _notify(self, status: str) -> None:
        if self.renderer is not None:
            self.renderer(self.points, status)

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _clear(self) -> None:
        self._cancel_ticker()
        self.points['infected'] = False
        self.points['infection_step'] = NEVER_INFECTED
        self.current_step = 0
        self.state = SimState.IDLE
        self.seed_index = None
        self.seed_trials = 0
        self.history = []

    def reset(self) -> None:
        """Clear all infection state and return to IDLE."""
        self._clear()
        self._notify("Simulation reset.")

    def _pick_seed(self) -> Tuple[int, int]:
        """Rejection-sample the outbreak point. Returns (index, trials).

        Each trial accepts with p ≥ outbreak.base_prob > 0 (enforced by
        validate_config), so the loop ends with probability 1 and takes
        at most 1 / base_prob trials on average.
        """
        ob = self.config.outbreak
        n = len(self.points)
        trials = 0
        while True:
            trials += 1
            idx = int(self._outbreak_rng.integers(0, n))
            p_accept = ob.base_prob + ob.risk_weight * float(self.points['risk'][idx])
            if self._outbreak_rng.random() < p_accept:
                return idx, trials

    def start(self) -> bool:
        """Seed an outbreak and begin ticking. No-op if already running."""
        if self.running:
            return False

        self._clear()
        idx, trials = self._pick_seed()
        self.points['infected'][idx] = True
        self.points['infection_step'][idx] = 0
        self.seed_index = idx
        self.seed_trials = trials
        self.state = SimState.RUNNING

        n_inf, n_uninf = self.counts()
        self.history.append(StepSummary(0, 1, n_inf, n_uninf))

        self._ticker = self._ticker_factory(self.speed_ms, self.step)
        self._ticker.start()
        self._notify(
            f"Outbreak started at point {idx} "
            f"(risk {self.points['risk'][idx]:.2f}) after {trials} trial(s)."
        )
        return True

    def stop(self) -> bool:
        """Cancel ticking. No-op if not running."""
        if not self.running:
            return False
        self._cancel_ticker()
        self.state = SimState.IDLE
        return True

    def step(self) -> bool:
        """Advance one step. Returns False if idle (nothing happened)."""
        if not self.running:
            return False

        self.current_step += 1
        frontier = self.frontier()

        if frontier.size == 0:
            self._cancel_ticker()
            self.state = SimState.IDLE
            n_inf, n_uninf = self.counts()
            self.history.append(
                StepSummary(self.current_step, 0, n_inf, n_uninf))
            self._notify(
                f"Simulation complete at step {self.current_step}: "
                f"{n_inf} infected, {n_uninf} uninfected."
            )
            return True

        sp = self.config.spread
        radius_deg = self.config.radius_deg
        n_new = 0
        for src in frontier:
            # Re-read each time: earlier sources this step shrink the pool
            candidates = neighbors_within(
                self.points, int(src), radius_deg,
                candidates=~self.points['infected'],
                earth_radius_km=sp.earth_radius_km,
                km_per_degree=sp.km_per_degree,
            )
            if candidates.size == 0:
                continue
            p_inf = sp.base_prob + sp.risk_weight * self.points['risk'][candidates]
            hit = candidates[self._spread_rng.random(candidates.size) < p_inf]
            self.points['infected'][hit] = True
            self.points['infection_step'][hit] = self.current_step
            n_new += hit.size

        n_inf, n_uninf = self.counts()
        summary = StepSummary(self.current_step, n_new, n_inf, n_uninf)
        self.history.append(summary)
        self._notify(summary.status)
        return True

    # ── drivers ────────────────────────────────────────────────────────

    def run(self) -> None:
        """Block on the ticker until the run stops or completes."""
        if self.running and self._ticker is not None:
            self._ticker.run()

    def run_until_complete(self) -> int:
        """Step without sleeping until the frontier empties. Returns final step."""
        while self.running:
            self.step()
        return self.current_step


# ═══════════════════════════════════════════════════════════════════════
# BATCH RUNS
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class OutbreakResult:
    """Results from a headless outbreak run."""
    points: np.ndarray
    history: List[StepSummary] = field(default_factory=list)
    final_step: int = 0
    seed_index: int = -1
    seed_trials: int = 0
    seed: Optional[int] = None

    @classmethod
    def from_simulator(cls, sim: OutbreakSimulator,
                       seed: Optional[int] = None) -> "OutbreakResult":
        """Snapshot a simulator's points and history after it stops."""
        return cls(
            points=sim.points,
            history=list(sim.history),
            final_step=sim.current_step,
            seed_index=sim.seed_index,
            seed_trials=sim.seed_trials,
            seed=seed,
        )

    @property
    def n_infected(self) -> int:
        return int(np.count_nonzero(self.points['infected']))

    @property
    def attack_rate(self) -> float:
        """Fraction of grid points infected by the end of the run."""
        return self.n_infected / len(self.points)

    def to_dataframe(self) -> pd.DataFrame:
        """Per-step epidemic curve, one row per StepSummary."""
        return pd.DataFrame(
            [(s.step, s.n_new, s.n_infected, s.n_uninfected) for s in self.history],
            columns=['step', 'n_new', 'n_infected', 'n_uninfected'],
        )


def run_outbreak(
    points: np.ndarray,
    config: Optional[OutbreakConfig] = None,
    seed: Optional[int] = None,
    renderer: Optional[Renderer] = None,
    rng=None,
) -> OutbreakResult:
    """Run one outbreak to completion without real-time scheduling.

    Args:
        points: POINT_DTYPE array (mutated in place).
        config: OutbreakConfig; default if None.
        seed: Master seed; falls back to config.simulation.seed.
        renderer: Optional callable(points, status).
        rng: Optional explicit RNG (overrides seed), as for OutbreakSimulator.

    Returns:
        OutbreakResult holding the final points and per-step history.
    """
    if config is None:
        config = default_config()
    if seed is None:
        seed = config.simulation.seed
    if rng is None:
        rng = create_rng_hierarchy(seed)

    sim = OutbreakSimulator(points, config=config, rng=rng, renderer=renderer)
    sim.start()
    sim.run_until_complete()
    return OutbreakResult.from_simulator(sim, seed=seed)
