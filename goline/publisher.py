"""Consumer side of the pipeline.

`Broker` is the messaging capability (see `mqtt_client.MqttClient` for the
paho-mqtt implementation). `Publisher` drains the `EventQueue` and sends one
JSON payload per event at QoS 0, not retained.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from .errors import PublishError
from .event_queue import EventQueue
from .events import ScoreEvent, encode_payload

logger = logging.getLogger(__name__)


class Broker(Protocol):
    def connect(self) -> None:
        """Open the session; raise `BrokerConnectionError` if it can't be opened."""
        ...

    def is_connected(self) -> bool:
        ...

    def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        """Send `payload` and wait until the client reports it written.

        Raises `PublishError` if the message could not be sent. Remote delivery
        is not awaited.
        """
        ...

    def disconnect(self, grace: float = 0.25) -> None:
        """Close the session, waiting at most `grace` seconds for the broker to confirm.

        Must also work when the session was already lost.
        """
        ...


class Publisher:
    """Single consumer of the event queue.

    A failed send is logged and the event dropped; there is no retry and no
    requeue. A publish that is in flight when the stop signal arrives runs to
    completion first.
    """

    def __init__(self, *, broker: Broker, events: EventQueue, topic: str, qos: int = 0) -> None:
        self.broker = broker
        self.events = events
        self.topic = topic
        self.qos = qos
        self.published = 0
        self.dropped = 0

    def publish_one(self, event: ScoreEvent) -> bool:
        payload = encode_payload(event)
        try:
            self.broker.publish(self.topic, payload, qos=self.qos, retain=False)
        except PublishError as e:
            self.dropped += 1
            logger.warning("can't send MQTT message for %s: %s", event.scorer.value, e)
            return False
        self.published += 1
        logger.debug("published %s to %s", payload, self.topic)
        return True

    def run(self, stop: threading.Event) -> None:
        logger.info("publishing to %s", self.topic)
        while not stop.is_set():
            event = self.events.get(stop)
            if event is None:
                continue
            try:
                self.publish_one(event)
            except Exception:
                logger.exception("unexpected error while publishing %s", event)
        logger.info("publisher stopped (published=%d, dropped=%d)", self.published, self.dropped)
