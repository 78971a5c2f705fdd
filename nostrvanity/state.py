"""
Shared search state and the records that flow out of a search.

SearchState is built from multiprocessing primitives so one instance can be
handed to worker processes (via the pool initializer) as well as threads.
The primitives come from the spawn context, the same one the process pool
uses, because a fork-context lock cannot be shared with a spawned process.
"""

import multiprocessing
import time
from dataclasses import dataclass

from nostrvanity.core import Candidate
from nostrvanity.matcher import Pattern

SPAWN = multiprocessing.get_context("spawn")


class SearchState:
    """Process-wide counters for one run.

    attempts only grows; found and stopped only go from clear to set.
    """

    def __init__(self):
        self._attempts = SPAWN.Value("Q", 0)
        self._found = SPAWN.Event()
        self._stop = SPAWN.Event()
        self.started_at = time.time()

    @property
    def attempts(self) -> int:
        return self._attempts.value

    def add_attempts(self, n: int) -> int:
        """Add n attempts and return the new total."""
        with self._attempts.get_lock():
            self._attempts.value += n
            return self._attempts.value

    @property
    def found(self) -> bool:
        return self._found.is_set()

    def mark_found(self) -> None:
        self._found.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        self._stop.set()

    def elapsed(self) -> float:
        return time.time() - self.started_at


@dataclass
class MatchEvent:
    """A candidate that satisfied a pattern, with the counters at discovery."""
    candidate: Candidate
    pattern: Pattern
    attempts: int
    elapsed: float

    @property
    def rate(self) -> float:
        return self.attempts / self.elapsed if self.elapsed > 0 else 0.0


@dataclass
class SearchStats:
    """Live stats during a search."""
    attempts: int = 0
    elapsed: float = 0.0
    rate: float = 0.0
    is_running: bool = False
    results_found: int = 0
