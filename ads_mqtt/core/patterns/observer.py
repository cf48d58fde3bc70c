"""
Observer Pattern Implementation for Connection State Changes

The broker client reconnects on its own in the background. Instead of hiding
that, every state change of a protocol client is published as a
ConnectionEvent through a ConnectionStateNotifier, and interested parts of the
bridge subscribe to it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class ConnectionState(Enum):
    """Connection state enumeration."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass
class ConnectionEvent:
    """Event data for a connection state change."""
    source: str
    state: ConnectionState
    previous_state: Optional[ConnectionState] = None
    error: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionObserver(ABC):
    """Abstract base class for connection state observers."""

    @abstractmethod
    async def notify(self, event: ConnectionEvent) -> None:
        """Handle connection state notification."""
        pass

    @abstractmethod
    def get_observer_id(self) -> str:
        """Get unique identifier for this observer."""
        pass

    def get_interested_states(self) -> List[ConnectionState]:
        """Get list of states this observer is interested in."""
        return list(ConnectionState)


class ConnectionStateNotifier:
    """Subject that notifies observers of connection state changes."""

    def __init__(self):
        self._observers: List[ConnectionObserver] = []
        self._logger = logging.getLogger(self.__class__.__name__)
        self._pending: set = set()

    def subscribe(self, observer: ConnectionObserver) -> None:
        """Subscribe an observer to connection state changes."""
        if observer not in self._observers:
            self._observers.append(observer)
            self._logger.debug(f"Subscribed observer: {observer.get_observer_id()}")
        else:
            self._logger.warning(f"Observer already subscribed: {observer.get_observer_id()}")

    async def notify_observers(self, event: ConnectionEvent) -> None:
        """Notify all interested observers of a connection state change."""
        interested_observers = [
            observer for observer in self._observers
            if event.state in observer.get_interested_states()
        ]

        if not interested_observers:
            self._logger.debug(f"No observers interested in {event.source} -> {event.state.value}")
            return

        await asyncio.gather(
            *(self._safe_notify_observer(observer, event) for observer in interested_observers)
        )

    def publish(self, event: ConnectionEvent) -> None:
        """Schedule notification of observers on the running event loop."""
        task = asyncio.get_running_loop().create_task(self.notify_observers(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_notify_observer(self, observer: ConnectionObserver, event: ConnectionEvent) -> None:
        """Safely notify a single observer, catching and logging any exceptions."""
        try:
            await observer.notify(event)
        except Exception as e:
            self._logger.error(f"Error notifying observer {observer.get_observer_id()}: {e}", exc_info=True)

    def get_observer_count(self) -> int:
        """Get the number of registered observers."""
        return len(self._observers)
