import struct
import threading

import pytest

from goline.errors import BrokerConnectionError, PublishError, ReadError


def raw(value: int) -> bytes:
    return bytes([1]) + struct.pack("<I", value)


class FakeReader:
    """Scripted line reader.

    Each line gets a list of values; `ReadError` instances in the list are
    raised instead of returned. Once a script runs out the last value repeats,
    or the script starts over when `repeat=True`.
    """

    def __init__(self, scripts, *, repeat=False):
        self._scripts = {line: list(values) for line, values in scripts.items()}
        self._pos = {line: 0 for line in scripts}
        self._repeat = repeat
        self._lock = threading.Lock()
        self.reads = {line: 0 for line in scripts}
        self.closed = False

    def read(self, line):
        with self._lock:
            script = self._scripts[line]
            i = self._pos[line]
            if i >= len(script):
                i = 0 if self._repeat else len(script) - 1
            self._pos[line] = i + 1
            self.reads[line] += 1
            item = script[i]
        if isinstance(item, Exception):
            raise item
        return raw(item)

    def close(self):
        self.closed = True


class FakeBroker:
    def __init__(self, *, fail_connect=False, fail_payloads=()):
        self.fail_connect = fail_connect
        self.fail_payloads = list(fail_payloads)
        self.connected = False
        self.connects = 0
        self.sent = []
        self.calls = []
        self.disconnect_grace = None
        self._lock = threading.Lock()

    def connect(self):
        self.connects += 1
        if self.fail_connect:
            raise BrokerConnectionError("connection refused")
        self.connected = True

    def is_connected(self):
        return self.connected

    def publish(self, topic, payload, *, qos=0, retain=False):
        with self._lock:
            self.calls.append("publish")
            if payload in self.fail_payloads:
                self.fail_payloads.remove(payload)
                raise PublishError("broker went away")
            self.sent.append((topic, payload, qos, retain))

    def disconnect(self, grace=0.25):
        self.calls.append("disconnect")
        self.disconnect_grace = grace
        self.connected = False


@pytest.fixture
def make_reader():
    return FakeReader


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def read_error():
    return ReadError("i2c bus error")


@pytest.fixture
def make_broker():
    return FakeBroker
