"""
Centralised exception definitions for the ADS to MQTT bridge.
All custom exceptions should inherit from BridgeError.
"""

class BridgeError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(BridgeError):
    """Raised when the configuration file is missing, empty or malformed."""

class ProtocolError(BridgeError):
    """Generic failure inside a protocol client (ADS, MQTT, …)."""

class ControllerConnectError(ProtocolError):
    """Raised when the ADS session to the PLC cannot be opened."""

class ControllerReadError(ProtocolError):
    """Raised when a symbol cannot be read (unknown name, no session, link drop)."""

    def __init__(self, symbol: str, message: str):
        super().__init__(f"Failed to read symbol '{symbol}': {message}")
        self.symbol = symbol

class BrokerConnectError(ProtocolError):
    """Reported when the MQTT broker refuses or drops the connection."""

class PublishError(ProtocolError):
    """Reported when a single MQTT publish could not be handed to the broker."""

    def __init__(self, topic: str, message: str):
        super().__init__(f"Failed to publish to topic {topic}: {message}")
        self.topic = topic
