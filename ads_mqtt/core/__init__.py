# ads_mqtt/core/__init__.py
"""Core infrastructure components for the ADS to MQTT bridge."""

# Import order: most fundamental to most specific

from .exceptions import (
    BridgeError,
    ConfigurationError,
    ProtocolError,
    ControllerConnectError,
    ControllerReadError,
    BrokerConnectError,
    PublishError,
)

from .patterns.observer import (
    ConnectionState,
    ConnectionEvent,
    ConnectionObserver,
    ConnectionStateNotifier,
)


__all__ = [
    "BridgeError",
    "ConfigurationError",
    "ProtocolError",
    "ControllerConnectError",
    "ControllerReadError",
    "BrokerConnectError",
    "PublishError",
    "ConnectionState",
    "ConnectionEvent",
    "ConnectionObserver",
    "ConnectionStateNotifier",
]
