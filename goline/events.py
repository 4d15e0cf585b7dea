from __future__ import annotations

# Data exchanged between pollers and the publisher.
#
# - `SensorReading`: one sampled value, only meaningful at sample time.
# - `ScoreEvent`: "this sensor just changed", consumed once by the publisher.
#
# Wire format (one JSON object, compact separators):
#     {"scorer":"home"}

import enum
import json
import struct
from dataclasses import dataclass

from .errors import ReadError

_READING = struct.Struct("<I")


class Scorer(str, enum.Enum):
    HOME = "home"
    GUEST = "guest"


@dataclass(frozen=True)
class SensorReading:
    sensor: Scorer
    value: int


@dataclass(frozen=True)
class ScoreEvent:
    scorer: Scorer

    def to_message(self) -> dict[str, str]:
        return {"scorer": self.scorer.value}


def decode_reading(raw: bytes) -> int:
    """Decode the value of a digital read response.

    The board answers with a status byte followed by a little-endian uint32,
    so only bytes 1..4 are significant.
    """
    if len(raw) < 1 + _READING.size:
        raise ReadError(f"short read: expected at least 5 bytes, got {len(raw)}")
    (value,) = _READING.unpack_from(bytes(raw), 1)
    return value


def encode_payload(event: ScoreEvent) -> bytes:
    return json.dumps(event.to_message(), separators=(",", ":")).encode("utf-8")


def decode_payload(raw: bytes | str) -> ScoreEvent:
    """Parse a published payload back into a `ScoreEvent`.

    Raises:
        ValueError: malformed JSON, not an object, or an unknown scorer tag.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("payload must be a JSON object")
    return ScoreEvent(scorer=Scorer(data.get("scorer")))
