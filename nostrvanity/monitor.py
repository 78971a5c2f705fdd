"""Periodic throughput sampling for a running search."""

import logging
import threading
from typing import Callable, Optional

from nostrvanity.state import SearchState, SearchStats

logger = logging.getLogger(__name__)

MONITOR_INTERVAL = 0.1         # seconds between samples
SAFETY_CEILING = 3600          # seconds, continuous mode default
MIN_RATE_WINDOW = 0.1          # seconds, avoids a huge rate on the first tick


class ThroughputMonitor:
    """Samples attempts/elapsed on its own thread and hands stats to render.

    Reads shared state only. When a ceiling is set and reached, on_ceiling
    is called once and the monitor exits.
    """

    def __init__(
        self,
        state: SearchState,
        render: Optional[Callable[[SearchStats], None]] = None,
        interval: float = MONITOR_INTERVAL,
        ceiling: Optional[float] = None,
        on_ceiling: Optional[Callable[[], None]] = None,
        results_found: Callable[[], int] = lambda: 0,
    ):
        self.state = state
        self.render = render
        self.interval = interval
        self.ceiling = ceiling
        self.on_ceiling = on_ceiling
        self.results_found = results_found
        self.ceiling_hit = False
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sample(self) -> SearchStats:
        attempts = self.state.attempts
        elapsed = self.state.elapsed()
        return SearchStats(
            attempts=attempts,
            elapsed=elapsed,
            rate=attempts / max(elapsed, MIN_RATE_WINDOW),
            is_running=not self._done.is_set(),
            results_found=self.results_found(),
        )

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name="vanity-monitor", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._done.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()

    def _run(self) -> None:
        while not self._done.wait(self.interval):
            stats = self.sample()
            if self.render:
                self.render(stats)
            if self.ceiling is not None and stats.elapsed >= self.ceiling:
                logger.warning(
                    "Time limit of %.0fs reached after %d attempts, stopping",
                    self.ceiling, stats.attempts,
                )
                self.ceiling_hit = True
                if self.on_ceiling:
                    self.on_ceiling()
                return
