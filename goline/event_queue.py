from __future__ import annotations

# Bounded hand-off between the pollers (producers) and the publisher (consumer).
#
# Backed by `queue.Queue`, so FIFO order is arrival order across all producers.
# A producer pushing to a full queue blocks until the publisher makes room.
# Both ends accept an optional stop event: while waiting they wake up every
# `wait_slice` seconds to check it, so a worker stalled on the queue can still
# honour a shutdown.

import queue
import threading

from .events import ScoreEvent

DEFAULT_CAPACITY = 5


class EventQueue:
    """Bounded multi-producer / single-consumer FIFO of `ScoreEvent`s."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, *, wait_slice: float = 0.05) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self.wait_slice = wait_slice
        self._q: "queue.Queue[ScoreEvent]" = queue.Queue(maxsize=capacity)

    def put(self, event: ScoreEvent, stop: threading.Event | None = None) -> bool:
        """Enqueue `event`, blocking while the queue is full.

        Returns False if `stop` was set before space became available; the
        event is then discarded.
        """
        if stop is None:
            self._q.put(event)
            return True
        while not stop.is_set():
            try:
                self._q.put(event, timeout=self.wait_slice)
                return True
            except queue.Full:
                continue
        return False

    def get(self, stop: threading.Event | None = None) -> ScoreEvent | None:
        """Dequeue the oldest event, blocking while the queue is empty.

        Returns None if `stop` was set while waiting.
        """
        if stop is None:
            return self._q.get()
        while not stop.is_set():
            try:
                return self._q.get(timeout=self.wait_slice)
            except queue.Empty:
                continue
        return None

    def qsize(self) -> int:
        return self._q.qsize()

    def empty(self) -> bool:
        return self._q.empty()

    def full(self) -> bool:
        return self._q.full()
