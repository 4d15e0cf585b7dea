from __future__ import annotations

# Lifecycle controller.
#
# Owns the broker session and the worker threads:
#
#   DISCONNECTED -> CONNECTED -> RUNNING -> SHUTTING_DOWN -> DISCONNECTED
#
# `run()` blocks until `disconnect()` is called from another thread (signal
# handler, embedding program). Shutdown sets every worker's stop event, joins
# every worker, and only then releases the broker connection, so no worker
# can still be touching the session when it goes away.

import enum
import logging
import threading
from dataclasses import dataclass

from .errors import BrokerConnectionError
from .event_queue import DEFAULT_CAPACITY, EventQueue
from .events import Scorer
from .publisher import Broker, Publisher
from .sensors import LineReader, SensorPoller

logger = logging.getLogger(__name__)


class ControllerState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


@dataclass
class Worker:
    name: str
    thread: threading.Thread
    stop: threading.Event


class LifecycleController:
    def __init__(
        self,
        *,
        broker: Broker,
        reader: LineReader,
        sensors: dict[Scorer, int],
        topic: str,
        queue_size: int = DEFAULT_CAPACITY,
        poll_interval: float = 0.01,
        disconnect_grace: float = 0.25,
    ) -> None:
        if not sensors:
            raise ValueError("at least one sensor is required")
        self.broker = broker
        self.reader = reader
        self.sensors = dict(sensors)
        self.topic = topic
        self.queue_size = queue_size
        self.poll_interval = poll_interval
        self.disconnect_grace = disconnect_grace

        self._state = ControllerState.DISCONNECTED
        self._state_lock = threading.Lock()
        self._shutdown = threading.Event()
        self._workers: list[Worker] = []

    @property
    def state(self) -> ControllerState:
        with self._state_lock:
            return self._state

    @property
    def workers(self) -> list[Worker]:
        return list(self._workers)

    def _set_state(self, state: ControllerState) -> None:
        with self._state_lock:
            self._state = state
        logger.info("controller %s", state.value)

    def connect(self) -> None:
        """Open the broker session.

        Raises:
            BrokerConnectionError: a session is already open or running, or the
                broker could not be reached.
        """
        if self.state is not ControllerState.DISCONNECTED or self.broker.is_connected():
            raise BrokerConnectionError("already connected")
        self.broker.connect()
        self._set_state(ControllerState.CONNECTED)

    def run(self) -> None:
        """Start the workers and block until `disconnect()` is called."""
        if self.state is not ControllerState.CONNECTED:
            raise RuntimeError(f"run() requires a connected controller (state={self.state.value})")

        events = EventQueue(self.queue_size)
        publisher = Publisher(broker=self.broker, events=events, topic=self.topic)
        self._workers = [self._spawn("publisher", publisher.run)]
        for scorer, line in self.sensors.items():
            poller = SensorPoller(
                scorer=scorer,
                line=line,
                reader=self.reader,
                events=events,
                poll_interval=self.poll_interval,
            )
            self._workers.append(self._spawn(f"poller-{scorer.value}", poller.run))
        self._set_state(ControllerState.RUNNING)

        try:
            while not self._shutdown.is_set():
                self._shutdown.wait(timeout=1.0)
        finally:
            self._stop_workers()
            # Also when the session was lost: the client still has to stop its
            # network loop.
            self.broker.disconnect(self.disconnect_grace)
            self._shutdown.clear()
            self._set_state(ControllerState.DISCONNECTED)

    def disconnect(self) -> None:
        """Ask `run()` to shut down. Safe to call from any thread, more than once."""
        self._shutdown.set()

    def _spawn(self, name: str, target) -> Worker:
        stop = threading.Event()
        thread = threading.Thread(target=target, args=(stop,), name=f"goline-{name}", daemon=True)
        thread.start()
        return Worker(name=name, thread=thread, stop=stop)

    def _stop_workers(self) -> None:
        self._set_state(ControllerState.SHUTTING_DOWN)
        for w in self._workers:
            w.stop.set()
        for w in self._workers:
            w.thread.join()
            logger.debug("worker %s exited", w.name)
