import threading
import time

from nostrvanity.monitor import ThroughputMonitor
from nostrvanity.state import SearchState


def test_sample_computes_rate():
    state = SearchState()
    state.started_at = time.time() - 2.0
    state.add_attempts(1000)
    stats = ThroughputMonitor(state).sample()
    assert stats.attempts == 1000
    assert 1.9 < stats.elapsed < 3.0
    assert 300 < stats.rate <= 530


def test_rate_window_floor_on_first_tick():
    state = SearchState()
    state.add_attempts(10)
    stats = ThroughputMonitor(state).sample()
    assert stats.rate <= 10 / 0.1


def test_render_is_called_until_stopped():
    state = SearchState()
    samples = []
    monitor = ThroughputMonitor(state, render=samples.append, interval=0.01)
    monitor.start()
    time.sleep(0.1)
    monitor.stop()
    count = len(samples)
    assert count >= 2
    time.sleep(0.05)
    assert len(samples) == count
    assert state.attempts == 0


def test_ceiling_calls_back_once():
    state = SearchState()
    hit = threading.Event()
    calls = []

    def on_ceiling():
        calls.append(1)
        hit.set()

    monitor = ThroughputMonitor(state, interval=0.01, ceiling=0.05, on_ceiling=on_ceiling)
    monitor.start()
    assert hit.wait(2)
    monitor.stop()
    assert monitor.ceiling_hit
    assert calls == [1]


def test_state_counters_are_monotone():
    state = SearchState()
    assert state.add_attempts(3) == 3
    assert state.add_attempts(0) == 3
    assert not state.found
    state.mark_found()
    state.mark_found()
    assert state.found
    assert not state.stopped
    state.request_stop()
    assert state.stopped
