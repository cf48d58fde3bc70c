"""Trigger strategies."""

from .base_trigger import TriggerStrategy
from .interval_trigger import IntervalTrigger

__all__ = [
    'TriggerStrategy',
    'IntervalTrigger'
]
