"""Error taxonomy.

Fatal errors (broker connection) propagate to the entrypoint. Transient errors
(line reads, publishes) are caught inside the worker that raised them and only
show up in the logs.
"""

from __future__ import annotations


class GolineError(Exception):
    """Base class for every error raised by this package."""


class BrokerConnectionError(GolineError, ConnectionError):
    """Broker unreachable, CONNACK refused, or a connect issued while connected."""


class ReadError(GolineError, OSError):
    """A sensor line could not be read (I2C failure, short buffer)."""


class PublishError(GolineError):
    """The broker client could not send a message."""
