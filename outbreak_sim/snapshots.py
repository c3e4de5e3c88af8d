"""Per-step infection snapshot recording.

Records the infection_step column of the grid each time the simulator
notifies its renderer, so a run can be replayed frame by frame after
the fact (or handed to a map front-end as a time series).

Usage:
    recorder = SnapshotRecorder()
    sim = OutbreakSimulator(points, renderer=recorder)
    sim.start()
    sim.run_until_complete()
    recorder.save("snapshots.npz")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np

from outbreak_sim.types import NEVER_INFECTED


@dataclass
class GridSnapshot:
    """One frame: infection_step for every point, plus the status line."""
    frame: int
    infection_step: np.ndarray   # int32, (n_points,)
    status: str

    @property
    def n_infected(self) -> int:
        return int(np.count_nonzero(self.infection_step != NEVER_INFECTED))


class SnapshotRecorder:
    """Renderer that stores a copy of the infection state per notification.

    When enabled=False, calls are no-ops.
    """

    def __init__(self, enabled: bool = True, lon: Optional[np.ndarray] = None,
                 lat: Optional[np.ndarray] = None):
        self.enabled = enabled
        self.lon = lon
        self.lat = lat
        self.snapshots: List[GridSnapshot] = []

    def __call__(self, points: np.ndarray, status: str) -> None:
        if not self.enabled:
            return
        if self.lon is None:
            self.lon = points['lon'].copy()
            self.lat = points['lat'].copy()
        self.snapshots.append(GridSnapshot(
            frame=len(self.snapshots),
            infection_step=points['infection_step'].copy(),
            status=status,
        ))

    def __len__(self) -> int:
        return len(self.snapshots)

    def infected_counts(self) -> np.ndarray:
        """(n_frames,) number of infected points per frame."""
        return np.array([s.n_infected for s in self.snapshots], dtype=np.int64)

    def save(self, path: str) -> None:
        """Save all frames to a compressed npz file.

        Layout: infection_step (n_frames, n_points) int32, status
        (n_frames,) str, lon/lat (n_points,) float64.
        """
        if not self.snapshots:
            return

        arrays = {
            'infection_step': np.stack([s.infection_step for s in self.snapshots]),
            'status': np.array([s.status for s in self.snapshots]),
            'lon': np.asarray(self.lon, dtype=np.float64),
            'lat': np.asarray(self.lat, dtype=np.float64),
        }
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(path, **arrays)

    @classmethod
    def load(cls, path: str) -> 'SnapshotRecorder':
        """Load frames from an npz file (recorder comes back disabled)."""
        data = np.load(path)
        recorder = cls(enabled=False, lon=data['lon'], lat=data['lat'])
        for i, (steps, status) in enumerate(zip(data['infection_step'], data['status'])):
            recorder.snapshots.append(GridSnapshot(
                frame=i, infection_step=steps, status=str(status)))
        return recorder
