"""Protocol client implementations."""

from .base_protocol_client import (
    BaseProtocolClient,
    ProtocolType,
    ProtocolClientConfig
)

from .ads_client import ADSClient
from .mqtt_client import MQTTClient
from .protocol_factory import ProtocolFactory

__all__ = [
    # Base classes
    'BaseProtocolClient',
    'ProtocolType',
    'ProtocolClientConfig',

    # Implementations
    'ADSClient',
    'MQTTClient',

    # Factory
    'ProtocolFactory'
]
