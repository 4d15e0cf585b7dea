"""MQTT topic helpers.

Topic layout under a configurable namespace (default: `goline`):

- `<ns>/goals`
    One message per score event: `{"scorer": "home" | "guest"}`.
"""

from __future__ import annotations


def goals_topic(namespace: str = "goline") -> str:
    return f"{namespace}/goals"
