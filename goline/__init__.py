"""GoLine: goal detection for a tabletop game, published over MQTT.

Two goal-detector switches are wired to digital lines of a GrovePi board.
The service polls each line, and every time one changes state it publishes
`{"scorer": "home"}` or `{"scorer": "guest"}` to an MQTT topic (default
`goline/goals`).

Pipeline:
- one `SensorPoller` thread per sensor line
- a bounded `EventQueue` shared by all pollers
- a single `Publisher` thread sending events through the broker
- a `LifecycleController` owning the broker session and the threads

See `goline.app` for how to run it.
"""
