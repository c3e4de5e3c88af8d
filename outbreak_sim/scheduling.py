"""Single-threaded interval ticker.

Drives periodic simulation steps cooperatively: one callback per tick,
each completing before the next sleep starts, so steps never overlap.
cancel() takes effect synchronously; any tick after it is a no-op.

Usage:
    ticker = IntervalTicker(500, sim.step)
    ticker.start()
    ticker.run()      # blocks until something calls ticker.cancel()
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class IntervalTicker:
    """Periodic callback scheduler with synchronous cancellation."""

    def __init__(
        self,
        interval_ms: float,
        callback: Callable[[], object],
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            interval_ms: Delay before each tick (milliseconds).
            callback: Called once per tick while active.
            sleep: Sleep function (seconds); injectable for tests.
        """
        self.interval_ms = interval_ms
        self.callback = callback
        self._sleep = sleep
        self.active = False
        self.n_ticks = 0

    def start(self) -> None:
        self.active = True

    def cancel(self) -> None:
        self.active = False

    def tick(self) -> bool:
        """Fire the callback once if still active. Returns whether it fired."""
        if not self.active:
            return False
        self.n_ticks += 1
        self.callback()
        return True

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Sleep/tick until cancelled (or max_ticks fired). Returns ticks fired."""
        fired = 0
        while self.active and (max_ticks is None or fired < max_ticks):
            self._sleep(self.interval_ms / 1000.0)
            if self.tick():
                fired += 1
        return fired
