"""Closable hand-off queue between the batch driver and the output consumer."""

import queue
import threading
from typing import Iterator, Optional

from nostrvanity.errors import ChannelClosedError
from nostrvanity.state import MatchEvent

_CLOSED = object()


class MatchChannel:
    """Unbounded multi-producer / single-consumer queue of MatchEvents.

    close() wakes the consumer once every event sent before it has been
    received. Sending after close raises ChannelClosedError.
    """

    def __init__(self):
        self._queue = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._closed = False
        self.sent = 0

    def send(self, event: MatchEvent) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosedError("Match channel is closed.")
            self._queue.put(event)
            self.sent += 1

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def receive(self, timeout: Optional[float] = None) -> Optional[MatchEvent]:
        """Next event, or None once the channel is closed and drained.

        Raises queue.Empty if timeout expires first.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any later receive() call.
            self._queue.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> Iterator[MatchEvent]:
        while True:
            event = self.receive()
            if event is None:
                return
            yield event
