# ads_mqtt/triggers/base_trigger.py
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional
from datetime import datetime

TickCallback = Callable[[], Awaitable[Any]]

class TriggerStrategy(ABC):
    """Abstract base class for all trigger strategies"""

    def __init__(self, trigger_config: Dict[str, Any]):
        self.config = trigger_config
        self.last_execution: Optional[datetime] = None
        self.execution_count: int = 0

    @abstractmethod
    def start(self, callback: TickCallback) -> None:
        """Begin invoking callback whenever the trigger fires"""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop firing; work already started is left to finish"""
        pass

    @property
    @abstractmethod
    def running(self) -> bool:
        pass

    def get_execution_metadata(self) -> Dict[str, Any]:
        """Return metadata about trigger execution"""
        return {
            "last_execution": self.last_execution,
            "execution_count": self.execution_count,
            "trigger_type": self.__class__.__name__
        }
