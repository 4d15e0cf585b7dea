import pytest

from goline.config import (
    DEFAULT_SENSORS,
    BrokerAddress,
    Settings,
    build_sensor_map,
    parse_broker_url,
    parse_pin,
    parse_sensor,
)
from goline.events import Scorer


def test_parse_broker_url_defaults():
    assert parse_broker_url("tcp://localhost:1883") == BrokerAddress("localhost", 1883, tls=False)
    assert parse_broker_url("broker.lan") == BrokerAddress("broker.lan", 1883, tls=False)
    assert parse_broker_url("ssl://broker.lan") == BrokerAddress("broker.lan", 8883, tls=True)
    assert str(parse_broker_url("mqtt://10.0.0.2:1884")) == "tcp://10.0.0.2:1884"


def test_parse_broker_url_rejects_bad_input():
    with pytest.raises(ValueError):
        parse_broker_url("http://localhost:1883")
    with pytest.raises(ValueError):
        parse_broker_url("tcp://:1883")


def test_parse_sensor_accepts_pin_prefix():
    assert parse_pin("D7") == 7
    assert parse_pin("8") == 8
    assert parse_sensor("home=D7") == (Scorer.HOME, 7)
    assert parse_sensor("GUEST=4") == (Scorer.GUEST, 4)


def test_parse_sensor_rejects_unknown_name():
    with pytest.raises(ValueError):
        parse_sensor("referee=D3")
    with pytest.raises(ValueError):
        parse_sensor("home")
    with pytest.raises(ValueError):
        parse_sensor("home=A0")


def test_build_sensor_map():
    assert build_sensor_map(None) == DEFAULT_SENSORS
    assert build_sensor_map([(Scorer.HOME, 2)]) == {Scorer.HOME: 2}
    with pytest.raises(ValueError):
        build_sensor_map([(Scorer.HOME, 2), (Scorer.HOME, 3)])


def test_settings_defaults():
    s = Settings()
    assert str(s.broker) == "tcp://localhost:1883"
    assert s.topic == "goline/goals"
    assert s.client_id == "goline"
    assert s.keepalive == 2
    assert s.sensors == {Scorer.HOME: 7, Scorer.GUEST: 8}
    assert s.queue_size == 5
