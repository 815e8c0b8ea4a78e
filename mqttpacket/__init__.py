"""Build and parse MQTT 3.1 / 3.1.1 control packets, with simple socket and serial transports."""

__version__ = "1.0.0"

__all__ = [
    "codec",
    "connect",
    "publish",
    "subscribe",
    "unsubscribe",
    "format",
    "transport",
    "serial_transport",
]