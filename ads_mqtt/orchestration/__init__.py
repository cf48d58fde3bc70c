# ads_mqtt/orchestration/__init__.py
"""Orchestration layer: lifecycle state, acquisition scheduler, orchestrator."""

from .orchestrator import (
    BridgeOrchestrator,
    EXIT_OK,
    EXIT_CONFIG_ERROR,
    EXIT_CONTROLLER_CONNECT_ERROR
)
from .scheduler import AcquisitionScheduler
from .state_machine import BridgeStateMachine, BridgeState

__all__ = [
    'BridgeOrchestrator',
    'AcquisitionScheduler',
    'BridgeStateMachine',
    'BridgeState',
    'EXIT_OK',
    'EXIT_CONFIG_ERROR',
    'EXIT_CONTROLLER_CONNECT_ERROR'
]
