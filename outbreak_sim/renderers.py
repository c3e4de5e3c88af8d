"""Renderer callbacks.

A renderer is any callable ``renderer(points, status)`` invoked after
reset, start and every step. Map front-ends plug in here; the package
ships a console printer and a fan-out combinator.
"""

from __future__ import annotations

import sys
from typing import Callable, Optional, TextIO

import numpy as np


class PrintRenderer:
    """Print each status line, optionally every n-th step only."""

    def __init__(self, every: int = 1, stream: Optional[TextIO] = None):
        self.every = max(1, every)
        self.stream = stream
        self._calls = 0

    def __call__(self, points: np.ndarray, status: str) -> None:
        self._calls += 1
        # always show first and terminal messages
        if (self._calls - 1) % self.every == 0 or not status.startswith("Step "):
            print(status, file=self.stream or sys.stdout)


def fan_out(*renderers: Callable[[np.ndarray, str], None]):
    """Combine renderers; each is called in order with the same arguments."""
    def _render(points: np.ndarray, status: str) -> None:
        for r in renderers:
            r(points, status)
    return _render
