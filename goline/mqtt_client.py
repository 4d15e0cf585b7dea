"""paho-mqtt implementation of the `Broker` capability.

Design:
- `MqttClient` owns one session and paho's background network loop.
- `connect()` blocks until the CONNACK arrives (or times out).
- `publish()` waits until paho reports the message as written, which is the
  only acknowledgment available at QoS 0.

paho's own logging is routed into the `goline.mqtt` logger.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import paho.mqtt.client as mqtt

from .config import BrokerAddress
from .errors import BrokerConnectionError, PublishError

logger = logging.getLogger(__name__)


class MqttClient:
    """Thin wrapper around paho-mqtt exposing connect / publish / disconnect."""

    def __init__(
        self,
        *,
        address: BrokerAddress,
        client_id: str = "goline",
        keepalive: int = 2,
        connect_timeout: float = 5.0,
        publish_timeout: float = 5.0,
    ) -> None:
        self.address = address
        self.client_id = client_id
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout

        self._client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id, clean_session=True)
        self._client.enable_logger(logging.getLogger("goline.mqtt"))
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        if address.tls:
            self._client.tls_set()

        self._connack = threading.Event()
        self._connected = threading.Event()
        self._disconnected = threading.Event()
        self._refused: str | None = None

    def connect(self) -> None:
        """Open the session.

        Raises:
            BrokerConnectionError: already connected, broker unreachable,
                connection refused, or no CONNACK within `connect_timeout`.
        """
        if self.is_connected():
            raise BrokerConnectionError("already connected")

        self._connack.clear()
        self._disconnected.clear()
        self._refused = None
        try:
            self._client.connect(self.address.host, self.address.port, keepalive=self.keepalive)
        except OSError as e:
            raise BrokerConnectionError(f"can't reach broker {self.address}: {e}") from e
        self._client.loop_start()

        if not self._connack.wait(self.connect_timeout):
            self._abort_connect()
            raise BrokerConnectionError(f"no CONNACK from {self.address} after {self.connect_timeout}s")
        if not self._connected.is_set():
            self._abort_connect()
            raise BrokerConnectionError(f"broker {self.address} refused connection: {self._refused}")

        logger.info("connected to MQTT %s as %s (keepalive=%ss)", self.address, self.client_id, self.keepalive)

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        if not self.is_connected():
            raise PublishError("not connected")
        try:
            info = self._client.publish(topic, payload=payload, qos=qos, retain=retain)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise PublishError(mqtt.error_string(info.rc))
            info.wait_for_publish(timeout=self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            raise PublishError(str(e)) from e
        if not info.is_published():
            raise PublishError(f"send not acknowledged after {self.publish_timeout}s")

    def disconnect(self, grace: float = 0.25) -> None:
        """Disconnect, giving the network loop up to `grace` seconds to finish.

        Also safe on a session that was already lost: the network loop is
        stopped either way.
        """
        was_connected = self.is_connected()
        self._client.disconnect()
        if was_connected and not self._disconnected.wait(grace):
            logger.warning("broker did not confirm disconnect within %ss", grace)
        self._client.loop_stop()
        self._connected.clear()

    def _abort_connect(self) -> None:
        # Closes the socket opened by connect() before the loop goes away.
        self._client.disconnect()
        self._client.loop_stop()

    # -------------------- internal callbacks --------------------

    def _on_connect(self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any) -> None:
        if reason_code.is_failure:
            self._refused = str(reason_code)
        else:
            self._connected.set()
        self._connack.set()

    def _on_disconnect(
        self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        was_connected = self._connected.is_set()
        self._connected.clear()
        self._disconnected.set()
        if was_connected:
            logger.info("disconnected from MQTT %s (%s)", self.address, reason_code)
