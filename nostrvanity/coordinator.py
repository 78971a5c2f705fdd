"""
Search coordinator: drives batches over a worker pool and hands matches to
the output consumer.
"""

import functools
import logging
import os
import threading
from concurrent.futures import BrokenExecutor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Union

from nostrvanity.channel import MatchChannel
from nostrvanity.core import Candidate, generate_candidate
from nostrvanity.errors import ChannelClosedError, WorkerJoinError
from nostrvanity.matcher import MatchKind, PatternMatcher, estimate_difficulty
from nostrvanity.monitor import MONITOR_INTERVAL, SAFETY_CEILING, ThroughputMonitor
from nostrvanity.state import SPAWN, MatchEvent, SearchState, SearchStats
from nostrvanity.worker import WorkerContext, init_worker, search_chunk

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10_000


def split_batch(batch_size: int, slots: int) -> list[int]:
    """Chunk sizes for one batch, one per worker slot, summing to batch_size."""
    base, extra = divmod(batch_size, slots)
    return [base + (1 if i < extra else 0) for i in range(min(slots, batch_size))]


class SearchCoordinator:
    """Orchestrates parallel vanity npub search.

    Usage:
        search = SearchCoordinator(["ace"], match_kind=MatchKind.PREFIX)
        search.on_progress = lambda stats: print(f"{stats.rate:.0f} keys/sec")
        search.on_match = lambda event: print(f"Found: {event.candidate.npub}")
        events = search.run_blocking()

    Each batch is split into one chunk per worker slot and mapped over the
    pool. In single-shot mode the winner among matches from one batch is the
    first match of the lowest-numbered slot, so exactly one MatchEvent is
    delivered no matter how the workers were scheduled.
    """

    def __init__(
        self,
        patterns: Union[PatternMatcher, Iterable[str]],
        match_kind: MatchKind = MatchKind.PREFIX,
        case_sensitive: bool = False,
        num_workers: int = 0,
        continuous: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_runtime: Optional[float] = None,
        max_batches: Optional[int] = None,
        use_processes: bool = True,
        generate: Callable[[], Candidate] = generate_candidate,
        monitor_interval: float = MONITOR_INTERVAL,
    ):
        if isinstance(patterns, PatternMatcher):
            self.matcher = patterns
        else:
            self.matcher = PatternMatcher.from_strings(patterns, match_kind, case_sensitive)

        if batch_size < 1:
            raise ValueError(f"Batch size must be positive, got {batch_size}.")

        self.num_workers = num_workers if num_workers > 0 else (os.cpu_count() or 1)
        self.continuous = continuous
        self.batch_size = batch_size
        self.max_batches = max_batches
        self.use_processes = use_processes
        self.generate = generate
        self.monitor_interval = monitor_interval
        if max_runtime is None and continuous:
            max_runtime = SAFETY_CEILING
        self.max_runtime = max_runtime

        # Callbacks
        self.on_progress: Optional[Callable[[SearchStats], None]] = None
        self.on_match: Optional[Callable[[MatchEvent], None]] = None

        # Internal state
        self._state: Optional[SearchState] = None
        self._channel: Optional[MatchChannel] = None
        self._monitor: Optional[ThroughputMonitor] = None
        self._threads: list[threading.Thread] = []
        self._results: list[MatchEvent] = []
        self._failure: Optional[BaseException] = None
        self._is_running = False
        self.batches = 0
        self.failures = 0

    def get_estimates(self) -> list[tuple[str, dict]]:
        """Difficulty estimate for each pattern at the configured worker count."""
        return [
            (p.value, estimate_difficulty(p, self.num_workers))
            for p in self.matcher.patterns
        ]

    def start(self) -> None:
        """Start the batch driver, output consumer and monitor (non-blocking)."""
        if self._is_running:
            raise RuntimeError("Search is already running")

        self._state = SearchState()
        self._channel = MatchChannel()
        self._results = []
        self._failure = None
        self.batches = 0
        self.failures = 0
        self._is_running = True

        self._monitor = ThroughputMonitor(
            self._state,
            render=self._render_progress,
            interval=self.monitor_interval,
            ceiling=self.max_runtime,
            on_ceiling=self.cancel,
            results_found=lambda: len(self._results),
        )
        self._threads = [
            threading.Thread(target=self._drive, name="vanity-batches", daemon=True),
            threading.Thread(target=self._consume, name="vanity-output", daemon=True),
        ]
        logger.info(
            "Searching %d pattern(s) with %d %s, batch size %d%s",
            len(self.matcher), self.num_workers,
            "processes" if self.use_processes else "threads",
            self.batch_size, " (continuous)" if self.continuous else "",
        )
        for t in self._threads:
            t.start()
        self._monitor.start()

    def cancel(self) -> None:
        """Ask the run to stop. Workers finish their current flush group only."""
        if self._state is not None and not self._state.stopped:
            logger.info("Stop requested after %d attempts", self._state.attempts)
            self._state.request_stop()

    def wait(self) -> list[MatchEvent]:
        """Block until the run has terminated and return delivered events.

        Raises WorkerJoinError if the pool broke, ChannelClosedError if a
        recorded match never reached the consumer, or whatever the on_match
        callback raised.
        """
        for t in self._threads:
            t.join()
        self._monitor.stop()
        self._is_running = False

        if self._failure is not None:
            raise self._failure
        if not self.continuous and self._state.found and self._channel.sent == 0:
            raise ChannelClosedError("A match was recorded but never delivered.")

        logger.info(
            "Search finished: %d attempts, %d batches, %d match(es)",
            self._state.attempts, self.batches, len(self._results),
        )
        return list(self._results)

    def run_blocking(self) -> list[MatchEvent]:
        """Run synchronously with progress callbacks. For CLI use."""
        self.start()
        try:
            return self.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted")
            self.cancel()
            return self.wait()

    @property
    def results(self) -> list[MatchEvent]:
        return list(self._results)

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def attempts(self) -> int:
        return self._state.attempts if self._state else 0

    @property
    def state(self) -> Optional[SearchState]:
        return self._state

    @property
    def time_limit_reached(self) -> bool:
        return self._monitor is not None and self._monitor.ceiling_hit

    def _make_pool(self, context: WorkerContext):
        if self.use_processes:
            return ProcessPoolExecutor(
                max_workers=self.num_workers,
                mp_context=SPAWN,
                initializer=init_worker,
                initargs=(context, True),
            )
        return ThreadPoolExecutor(
            max_workers=self.num_workers,
            thread_name_prefix="vanity-worker",
        )

    def _drive(self) -> None:
        state = self._state
        context = WorkerContext(
            matcher=self.matcher,
            state=state,
            generate=self.generate,
            continuous=self.continuous,
        )
        sizes = split_batch(self.batch_size, self.num_workers)
        slots = list(range(len(sizes)))
        # Thread pools share the worker module with any other run in this
        # process, so each task carries its own context.
        task = search_chunk
        if not self.use_processes:
            task = functools.partial(search_chunk, context=context)

        try:
            with self._make_pool(context) as pool:
                while not state.stopped:
                    if not self.continuous and state.found:
                        break
                    if self.max_batches is not None and self.batches >= self.max_batches:
                        break

                    # map() yields in slot order regardless of completion order
                    chunks = list(pool.map(task, slots, sizes))
                    self.batches += 1
                    self.failures += sum(c.failures for c in chunks)
                    events = [event for chunk in chunks for event in chunk.matches]
                    if not events:
                        continue

                    if self.continuous:
                        for event in events:
                            self._channel.send(event)
                    else:
                        if len(events) > 1:
                            logger.debug(
                                "%d matches in batch %d, keeping slot %d's",
                                len(events), self.batches,
                                next(c.slot for c in chunks if c.matches),
                            )
                        self._channel.send(events[0])
                        break
        except BrokenExecutor as e:
            self._fail(WorkerJoinError(f"Worker pool failed: {e}"))
        except Exception as e:
            logger.exception("Batch driver failed")
            self._fail(e)
        finally:
            self._channel.close()

    def _consume(self) -> None:
        try:
            for event in self._channel:
                self._results.append(event)
                if self.on_match:
                    self.on_match(event)
                if not self.continuous:
                    break
        except Exception as e:
            logger.error("Output handling failed: %s", e)
            self._fail(e)

    def _fail(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc
        self._state.request_stop()

    def _render_progress(self, stats: SearchStats) -> None:
        if self.on_progress:
            self.on_progress(stats)
