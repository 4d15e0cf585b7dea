from __future__ import annotations

# Sensor side of the pipeline.
#
# - `LineReader` is the hardware capability: read one digital line, return the
#   raw response bytes or raise `ReadError`.
# - `GrovePiLineReader` implements it for a GrovePi board on the I2C bus.
# - `SensorPoller` samples one line in a loop and pushes a `ScoreEvent` every
#   time the decoded value differs from the last one it stored.

import logging
import threading
import time
from typing import Protocol

from .errors import ReadError
from .event_queue import EventQueue
from .events import ScoreEvent, Scorer, SensorReading, decode_reading

logger = logging.getLogger(__name__)

GROVEPI_ADDRESS = 0x04
DIGITAL_READ_CMD = 1
RESPONSE_LENGTH = 5


class LineReader(Protocol):
    def read(self, line: int) -> bytes:
        """Return the raw response for digital line `line`; raise `ReadError` on failure."""
        ...


class GrovePiLineReader:
    """Digital reads against the GrovePi firmware over I2C (smbus2).

    A read is a command block write followed by a fixed-size response read.
    The two halves must not interleave between pollers, so they run under a
    lock shared by every caller of this reader.
    """

    def __init__(self, *, bus: int = 1, address: int = GROVEPI_ADDRESS, settle_seconds: float = 0.1) -> None:
        # Imported here so the rest of the package works on hosts without I2C.
        from smbus2 import SMBus

        self.address = address
        self.settle_seconds = settle_seconds
        self._bus = SMBus(bus)
        self._lock = threading.Lock()

    def read(self, line: int) -> bytes:
        from smbus2 import i2c_msg

        with self._lock:
            try:
                self._bus.write_i2c_block_data(self.address, 1, [DIGITAL_READ_CMD, line, 0, 0])
                time.sleep(self.settle_seconds)
                msg = i2c_msg.read(self.address, RESPONSE_LENGTH)
                self._bus.i2c_rdwr(msg)
            except OSError as e:
                raise ReadError(f"digital read on line {line} failed: {e}") from e
        return bytes(list(msg))

    def close(self) -> None:
        self._bus.close()


class SensorPoller:
    """Edge detector for one sensor line.

    The poller owns its last reading; nothing else reads or writes it.
    """

    def __init__(
        self,
        *,
        scorer: Scorer,
        line: int,
        reader: LineReader,
        events: EventQueue,
        poll_interval: float = 0.01,
    ) -> None:
        self.scorer = scorer
        self.line = line
        self.reader = reader
        self.events = events
        self.poll_interval = poll_interval
        self.last = 0

    def sample(self) -> SensorReading:
        return SensorReading(sensor=self.scorer, value=decode_reading(self.reader.read(self.line)))

    def prime(self) -> None:
        """Seed the stored reading with the current line value.

        If the line can't be read the stored value stays at 0.
        """
        try:
            self.last = self.sample().value
        except ReadError as e:
            logger.warning("[%s] can't read line %s: %s", self.scorer.value, self.line, e)

    def poll_once(self, stop: threading.Event | None = None) -> ScoreEvent | None:
        """Take one sample and emit an event if the value changed.

        A failed read is skipped: no comparison, and the stored value is kept.
        """
        try:
            reading = self.sample()
        except ReadError as e:
            logger.warning("[%s] can't read line %s: %s", self.scorer.value, self.line, e)
            return None

        if reading.value == self.last:
            return None

        event = ScoreEvent(scorer=self.scorer)
        if not self.events.put(event, stop):
            # Shutdown requested while the queue was full.
            return None
        logger.debug("[%s] line %s changed %s -> %s", self.scorer.value, self.line, self.last, reading.value)
        self.last = reading.value
        return event

    def run(self, stop: threading.Event) -> None:
        logger.info("[%s] polling line %s", self.scorer.value, self.line)
        self.prime()
        while not stop.is_set():
            try:
                self.poll_once(stop)
            except Exception:
                logger.exception("[%s] unexpected error while polling", self.scorer.value)
            stop.wait(self.poll_interval)
        logger.info("[%s] poller stopped", self.scorer.value)
