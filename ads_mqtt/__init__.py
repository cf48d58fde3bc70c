"""ADS to MQTT bridge - Main Package"""

__version__ = '1.0.0'
__description__ = 'Polls Beckhoff PLC symbols over ADS and publishes them to MQTT'

# Core - most fundamental
from .core import BridgeError, ConfigurationError, ConnectionStateNotifier

# Models - domain objects
from .models import BridgeConfig, Tag, Payload, load_config

# Mapping
from .mapping import resolve_topic

# Protocols
from .protocols import ADSClient, MQTTClient, ProtocolFactory

# Orchestration
from .orchestration import BridgeOrchestrator, AcquisitionScheduler

__all__ = [
    # Core
    'BridgeError',
    'ConfigurationError',
    'ConnectionStateNotifier',

    # Models
    'BridgeConfig',
    'Tag',
    'Payload',
    'load_config',

    # Mapping
    'resolve_topic',

    # Protocols
    'ADSClient',
    'MQTTClient',
    'ProtocolFactory',

    # Orchestration
    'BridgeOrchestrator',
    'AcquisitionScheduler'
]
