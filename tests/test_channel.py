import queue
import threading

import pytest

from nostrvanity.channel import MatchChannel
from nostrvanity.errors import ChannelClosedError


def test_events_arrive_in_send_order_and_iteration_ends_on_close():
    channel = MatchChannel()
    for i in range(5):
        channel.send(i)
    channel.close()
    assert list(channel) == [0, 1, 2, 3, 4]
    assert channel.sent == 5


def test_receive_after_close_keeps_returning_none():
    channel = MatchChannel()
    channel.close()
    channel.close()
    assert channel.closed
    assert channel.receive() is None
    assert channel.receive() is None


def test_send_after_close_raises():
    channel = MatchChannel()
    channel.close()
    with pytest.raises(ChannelClosedError):
        channel.send("late")


def test_receive_timeout():
    channel = MatchChannel()
    with pytest.raises(queue.Empty):
        channel.receive(timeout=0.01)


def test_many_producers_one_consumer():
    channel = MatchChannel()
    received = []
    consumer = threading.Thread(target=lambda: received.extend(channel))
    consumer.start()

    def produce(base):
        for i in range(100):
            channel.send(base + i)

    producers = [threading.Thread(target=produce, args=(n * 1000,)) for n in range(4)]
    for p in producers:
        p.start()
    for p in producers:
        p.join()
    channel.close()
    consumer.join(timeout=5)

    assert not consumer.is_alive()
    assert sorted(received) == sorted(n * 1000 + i for n in range(4) for i in range(100))
