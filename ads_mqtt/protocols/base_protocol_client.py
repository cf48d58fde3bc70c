"""
Industrial Protocol Client Framework
Base abstract class and interfaces for the controller and broker clients
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import asyncio
import logging
import time
from enum import Enum

from ads_mqtt.core.patterns.observer import ConnectionEvent, ConnectionState, ConnectionStateNotifier


class ProtocolType(Enum):
    """Enumeration of supported protocol types."""
    ADS = "ads"
    MQTT = "mqtt"


class ProtocolClientConfig:
    """Configuration class for protocol clients."""

    def __init__(self, protocol_type: ProtocolType, connection_params: Dict[str, Any]):
        self.protocol_type = protocol_type
        self.connection_params = connection_params


class BaseProtocolClient(ABC):
    """
    Abstract base class for the bridge's protocol clients.

    Implements the Template Method pattern for the connect/disconnect
    lifecycle and reports every connection state change to an optional
    ConnectionStateNotifier.
    """

    def __init__(self, config: ProtocolClientConfig, notifier: Optional[ConnectionStateNotifier] = None):
        self.config = config
        self.notifier = notifier
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connection_state = ConnectionState.DISCONNECTED
        self.last_error: Optional[BaseException] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._start_time: Optional[float] = None

    def validate(self):
        """Check the connection parameters without touching the network.

        Raises:
            ConfigurationError: the parameters cannot describe a connection.
        """
        self._validate_config()

    # Template method - defines the algorithm skeleton
    async def connect(self):
        """
        Validate the configuration, build the protocol client and connect.

        Whether this call returns once the link is up, or as soon as the
        attempt is under way, is up to the subclass' ``_connect``.
        """
        self.validate()
        self._loop = asyncio.get_running_loop()
        self._start_time = time.time()

        self.logger.info(f"Starting {self.config.protocol_type.value} client...")
        await self._initialize_client()
        self._set_state(ConnectionState.CONNECTING)
        await self._connect()

    async def disconnect(self):
        """Release the connection. Best-effort: errors are logged, never raised."""
        try:
            self.logger.info("Cleaning up resources...")
            await self._disconnect()
        except Exception as e:
            self.logger.error(f"Error during cleanup: {e}")
        finally:
            self._set_state(ConnectionState.DISCONNECTED)

    # Abstract methods that subclasses must implement (Strategy pattern)
    @abstractmethod
    async def _initialize_client(self):
        """Initialize the protocol-specific client."""
        pass

    @abstractmethod
    async def _connect(self):
        """Establish connection to the protocol server/broker."""
        pass

    @abstractmethod
    async def _disconnect(self):
        """Disconnect from the protocol server/broker."""
        pass

    @abstractmethod
    def _validate_config(self):
        """Validate protocol-specific configuration."""
        pass

    # State reporting
    def _set_state(self, new_state: ConnectionState, error: Optional[BaseException] = None):
        """Record a state change and publish it. Must run on the event loop thread."""
        previous = self.connection_state
        if new_state == previous and error is None:
            return

        self.connection_state = new_state
        if error is not None:
            self.last_error = error

        if self.notifier is None:
            return
        try:
            self.notifier.publish(ConnectionEvent(
                source=self.config.protocol_type.value,
                state=new_state,
                previous_state=previous,
                error=error,
            ))
        except RuntimeError:
            # no running loop (process teardown); nobody left to tell
            self.logger.debug(f"Dropped state event {previous.value} -> {new_state.value}")

    def _set_state_threadsafe(self, new_state: ConnectionState, error: Optional[BaseException] = None):
        """Hand a state change from a library thread over to the event loop."""
        if self._loop is None or self._loop.is_closed():
            self.connection_state = new_state
            return
        self._loop.call_soon_threadsafe(self._set_state, new_state, error)

    # Utility methods
    def get_connection_state(self) -> ConnectionState:
        """Get current connection state."""
        return self.connection_state

    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self.connection_state == ConnectionState.CONNECTED

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "protocol_type": self.config.protocol_type.value,
            "connection_state": self.connection_state.value,
            "last_error": str(self.last_error) if self.last_error else None,
            "uptime": time.time() - self._start_time if self._start_time else 0.0,
        }
