from __future__ import annotations

# Runtime configuration.
#
# Everything tunable lives in `Settings`; the command line in `app.py` builds
# one from its flags. The parse helpers raise ValueError on bad input so
# argparse can report them as usage errors.

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .events import Scorer
from .mqtt_topics import goals_topic

DEFAULT_BROKER_URL = "tcp://localhost:1883"
DEFAULT_CLIENT_ID = "goline"
DEFAULT_KEEPALIVE = 2

PLAIN_SCHEMES = ("tcp", "mqtt")
TLS_SCHEMES = ("ssl", "tls", "mqtts")

# GrovePi digital ports D7 / D8.
DEFAULT_SENSORS: dict[Scorer, int] = {Scorer.HOME: 7, Scorer.GUEST: 8}


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    tls: bool = False

    def __str__(self) -> str:
        scheme = "ssl" if self.tls else "tcp"
        return f"{scheme}://{self.host}:{self.port}"


def parse_broker_url(url: str) -> BrokerAddress:
    """Parse `tcp://host:port` style broker addresses.

    A bare `host` or `host:port` is treated as `tcp://`.
    """
    if "://" not in url:
        url = f"tcp://{url}"
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in PLAIN_SCHEMES + TLS_SCHEMES:
        raise ValueError(f"unsupported broker scheme: {parts.scheme!r}")
    if not parts.hostname:
        raise ValueError(f"missing broker host in {url!r}")

    tls = scheme in TLS_SCHEMES
    port = parts.port  # raises ValueError when out of range
    if port is None:
        port = 8883 if tls else 1883
    return BrokerAddress(host=parts.hostname, port=port, tls=tls)


def parse_pin(value: str) -> int:
    """Accept `7` or `D7`."""
    text = value.strip().upper()
    if text.startswith("D"):
        text = text[1:]
    if not text.isdigit():
        raise ValueError(f"invalid digital pin: {value!r}")
    return int(text)


def parse_sensor(value: str) -> tuple[Scorer, int]:
    """Parse a `NAME=PIN` sensor assignment, e.g. `home=D7`."""
    name, sep, pin = value.partition("=")
    if not sep:
        raise ValueError(f"expected NAME=PIN, got {value!r}")
    try:
        scorer = Scorer(name.strip().lower())
    except ValueError:
        known = ", ".join(s.value for s in Scorer)
        raise ValueError(f"unknown sensor {name!r} (expected one of: {known})") from None
    return scorer, parse_pin(pin)


def build_sensor_map(assignments: list[tuple[Scorer, int]] | None) -> dict[Scorer, int]:
    if not assignments:
        return dict(DEFAULT_SENSORS)
    sensors: dict[Scorer, int] = {}
    for scorer, pin in assignments:
        if scorer in sensors:
            raise ValueError(f"sensor {scorer.value!r} assigned more than once")
        sensors[scorer] = pin
    return sensors


@dataclass(frozen=True)
class Settings:
    broker: BrokerAddress = field(default_factory=lambda: parse_broker_url(DEFAULT_BROKER_URL))
    topic: str = field(default_factory=goals_topic)
    client_id: str = DEFAULT_CLIENT_ID
    keepalive: int = DEFAULT_KEEPALIVE
    sensors: dict[Scorer, int] = field(default_factory=lambda: dict(DEFAULT_SENSORS))
    i2c_bus: int = 1
    i2c_address: int = 0x04
    poll_interval: float = 0.01
    queue_size: int = 5
    disconnect_grace: float = 0.25
