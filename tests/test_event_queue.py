import threading
import time

import pytest

from goline.event_queue import EventQueue
from goline.events import ScoreEvent, Scorer

HOME = ScoreEvent(Scorer.HOME)
GUEST = ScoreEvent(Scorer.GUEST)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        EventQueue(0)


def test_fifo_across_producers():
    q = EventQueue(5)
    q.put(HOME)
    q.put(GUEST)
    q.put(HOME)
    assert [q.get(), q.get(), q.get()] == [HOME, GUEST, HOME]
    assert q.empty()


def test_put_blocks_while_full_until_consumer_makes_room():
    q = EventQueue(1)
    q.put(HOME)
    assert q.full()

    done = threading.Event()

    def producer():
        q.put(GUEST)
        done.set()

    t = threading.Thread(target=producer, daemon=True)
    t.start()
    assert not done.wait(0.2)

    assert q.get() == HOME
    assert done.wait(2.0)
    assert q.get() == GUEST
    t.join(1.0)


def test_put_gives_up_when_stopped():
    q = EventQueue(1, wait_slice=0.01)
    q.put(HOME)
    stop = threading.Event()
    result = []

    t = threading.Thread(target=lambda: result.append(q.put(GUEST, stop)), daemon=True)
    t.start()
    time.sleep(0.05)
    stop.set()
    t.join(2.0)

    assert not t.is_alive()
    assert result == [False]
    assert q.qsize() == 1


def test_get_returns_none_when_stopped():
    q = EventQueue(wait_slice=0.01)
    stop = threading.Event()
    stop.set()
    assert q.get(stop) is None


def test_get_with_stop_returns_queued_event():
    q = EventQueue(wait_slice=0.01)
    q.put(HOME)
    stop = threading.Event()
    assert q.get(stop) == HOME
