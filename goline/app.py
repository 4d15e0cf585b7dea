from __future__ import annotations

# Command-line entrypoint.
#
#     python -m goline.app run [--broker tcp://localhost:1883] [--sensor home=D7 ...]
#
# `run` connects to the broker, starts one poller per sensor plus the
# publisher, and keeps going until SIGINT / SIGTERM. `read` is a debugging
# helper that samples one line once.

import argparse
import logging
import signal
import sys

from .config import (
    DEFAULT_BROKER_URL,
    DEFAULT_CLIENT_ID,
    DEFAULT_KEEPALIVE,
    Settings,
    build_sensor_map,
    parse_broker_url,
    parse_pin,
    parse_sensor,
)
from .errors import BrokerConnectionError, ReadError
from .events import decode_reading
from .mqtt_topics import goals_topic

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="GoLine goal detector - main entrypoint")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_common_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--i2c-bus", type=int, default=1)
        p.add_argument("--i2c-address", type=lambda s: int(s, 0), default=0x04)
        p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    p_run = sub.add_parser("run", help="Watch the sensors and publish goals to MQTT")
    add_common_args(p_run)
    p_run.add_argument("--broker", type=parse_broker_url, default=DEFAULT_BROKER_URL, help="e.g. tcp://host:1883")
    p_run.add_argument("--topic", default=goals_topic())
    p_run.add_argument("--client-id", default=DEFAULT_CLIENT_ID)
    p_run.add_argument("--keepalive", type=int, default=DEFAULT_KEEPALIVE, help="seconds")
    p_run.add_argument(
        "--sensor",
        type=parse_sensor,
        action="append",
        metavar="NAME=PIN",
        help="sensor assignment, repeatable (default: home=D7 guest=D8)",
    )
    p_run.add_argument("--poll-interval", type=float, default=0.01, help="seconds between samples")
    p_run.add_argument("--queue-size", type=int, default=5)
    p_run.add_argument("--disconnect-grace", type=float, default=0.25, help="seconds")

    p_read = sub.add_parser("read", help="(advanced) Read one digital line once and print its value")
    add_common_args(p_read)
    p_read.add_argument("--pin", type=parse_pin, required=True, help="e.g. 7 or D7")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.cmd == "read":
        return _read_once(args)

    try:
        sensors = build_sensor_map(args.sensor)
    except ValueError as e:
        parser.error(str(e))

    settings = Settings(
        broker=args.broker,
        topic=args.topic,
        client_id=args.client_id,
        keepalive=args.keepalive,
        sensors=sensors,
        i2c_bus=args.i2c_bus,
        i2c_address=args.i2c_address,
        poll_interval=args.poll_interval,
        queue_size=args.queue_size,
        disconnect_grace=args.disconnect_grace,
    )
    return run(settings)


def run(settings: Settings) -> int:
    # Hardware and MQTT dependencies are only needed for the real service.
    from .controller import LifecycleController
    from .mqtt_client import MqttClient
    from .sensors import GrovePiLineReader

    try:
        reader = GrovePiLineReader(bus=settings.i2c_bus, address=settings.i2c_address)
    except OSError as e:
        logger.error("can't open I2C bus %s: %s", settings.i2c_bus, e)
        return 1
    broker = MqttClient(address=settings.broker, client_id=settings.client_id, keepalive=settings.keepalive)
    controller = LifecycleController(
        broker=broker,
        reader=reader,
        sensors=settings.sensors,
        topic=settings.topic,
        queue_size=settings.queue_size,
        poll_interval=settings.poll_interval,
        disconnect_grace=settings.disconnect_grace,
    )

    try:
        controller.connect()
    except BrokerConnectionError as e:
        logger.error("can't connect to MQTT broker: %s", e)
        reader.close()
        return 1

    def _request_shutdown(signum, frame) -> None:
        logger.info("received %s, shutting down", signal.Signals(signum).name)
        controller.disconnect()

    signal.signal(signal.SIGINT, _request_shutdown)
    signal.signal(signal.SIGTERM, _request_shutdown)

    sensors = ", ".join(f"{s.value}=D{pin}" for s, pin in settings.sensors.items())
    logger.info("watching %s, publishing to %s on %s", sensors, settings.topic, settings.broker)
    try:
        controller.run()
    finally:
        reader.close()
    return 0


def _read_once(args: argparse.Namespace) -> int:
    from .sensors import GrovePiLineReader

    try:
        reader = GrovePiLineReader(bus=args.i2c_bus, address=args.i2c_address)
    except OSError as e:
        logger.error("can't open I2C bus %s: %s", args.i2c_bus, e)
        return 1
    try:
        value = decode_reading(reader.read(args.pin))
    except ReadError as e:
        logger.error("can't read pin D%s: %s", args.pin, e)
        return 1
    finally:
        reader.close()
    print(f"D{args.pin} = {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
