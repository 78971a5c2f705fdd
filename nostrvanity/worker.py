"""
Pool worker for vanity npub generation.

IMPORTANT: This module must contain only top-level importable functions.
On macOS/Windows, multiprocessing uses 'spawn' which requires worker
targets to be importable by name from a module.

In a process pool the initializer stores the per-run context in a module
global, so each task only carries its slot index and chunk size. Thread pools
pass the context with every task instead.
"""

import logging
import signal
from dataclasses import dataclass, field
from typing import Callable, Optional

from nostrvanity.core import Candidate
from nostrvanity.errors import GenerationError
from nostrvanity.matcher import PatternMatcher
from nostrvanity.state import MatchEvent, SearchState

logger = logging.getLogger(__name__)

FLUSH_EVERY = 256  # local attempts folded into the shared counter at a time


@dataclass
class WorkerContext:
    matcher: PatternMatcher
    state: SearchState
    generate: Callable[[], Candidate]
    continuous: bool = False


@dataclass
class ChunkResult:
    """What one worker slot produced for one batch."""
    slot: int
    attempts: int = 0
    failures: int = 0
    matches: list[MatchEvent] = field(default_factory=list)


_context: Optional[WorkerContext] = None


def init_worker(context: WorkerContext, ignore_sigint: bool = False) -> None:
    """Pool initializer. Worker processes leave Ctrl-C to the parent."""
    global _context
    _context = context
    if ignore_sigint:
        signal.signal(signal.SIGINT, signal.SIG_IGN)


def search_chunk(slot: int, count: int, context: Optional[WorkerContext] = None) -> ChunkResult:
    """Generate and test up to count candidates.

    Stops early when the run is cancelled (checked every FLUSH_EVERY
    candidates), or, outside continuous mode, as soon as any worker has
    recorded a match. Every started candidate is
    added to the shared attempt counter exactly once, including those whose
    generation failed.

    Args:
        slot: Worker slot index within the batch; used for tie-breaking.
        count: Candidates to attempt.
        context: Run context for thread pools, which share this module
            between runs. Process workers use the one set by init_worker.
    """
    ctx = context if context is not None else _context
    if ctx is None:
        raise RuntimeError("search_chunk called before init_worker")
    state = ctx.state
    result = ChunkResult(slot=slot)
    pending = 0

    for _ in range(count):
        if not ctx.continuous and state.found:
            break
        # cancellation is checked once per flush group
        if result.attempts % FLUSH_EVERY == 0 and state.stopped:
            break

        result.attempts += 1
        pending += 1
        if pending >= FLUSH_EVERY:
            state.add_attempts(pending)
            pending = 0

        try:
            candidate = ctx.generate()
        except GenerationError as e:
            result.failures += 1
            logger.debug("Skipping candidate in slot %d: %s", slot, e)
            continue

        pattern = ctx.matcher.find_match(candidate)
        if pattern is None:
            continue

        total = state.add_attempts(pending)
        pending = 0
        state.mark_found()
        result.matches.append(MatchEvent(
            candidate=candidate,
            pattern=pattern,
            attempts=total,
            elapsed=state.elapsed(),
        ))
        if not ctx.continuous:
            break

    if pending:
        state.add_attempts(pending)
    return result
