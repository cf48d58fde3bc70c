"""Data models and domain objects."""

from .config_models import (
    Tag,
    MqttConnectionConfig,
    MqttConfig,
    PlcConfig,
    BridgeConfig,
    load_config
)

from .payload import (
    Payload,
    TagValue,
    utc_timestamp
)

__all__ = [
    # Configuration
    'Tag',
    'MqttConnectionConfig',
    'MqttConfig',
    'PlcConfig',
    'BridgeConfig',
    'load_config',

    # Payload
    'Payload',
    'TagValue',
    'utc_timestamp'
]
