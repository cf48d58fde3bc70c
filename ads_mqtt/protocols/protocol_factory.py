from typing import Optional

from ads_mqtt.core.patterns.observer import ConnectionStateNotifier
from ads_mqtt.protocols.ads_client import ADSClient
from ads_mqtt.protocols.mqtt_client import MQTTClient
from ads_mqtt.protocols.base_protocol_client import BaseProtocolClient, ProtocolClientConfig, ProtocolType


class ProtocolFactory:

    _registry = {
        ProtocolType.ADS : ADSClient,
        ProtocolType.MQTT : MQTTClient,
    }

    @classmethod
    def create(cls, config: ProtocolClientConfig,
               notifier: Optional[ConnectionStateNotifier] = None) -> BaseProtocolClient:
        """
        Create a protocol client.

        Args:
            config: Protocol type and connection parameters
            notifier: Receives the client's connection state changes

        Returns:
            BaseProtocolClient: Configured, not yet connected, client instance
        """
        handler = cls._registry.get(config.protocol_type)
        if not handler:
            raise ValueError(f"No handler registered for protocol: {config.protocol_type}")

        return handler(config, notifier)

    @classmethod
    def controller(cls, connection_params, notifier=None) -> ADSClient:
        return cls.create(ProtocolClientConfig(ProtocolType.ADS, dict(connection_params)), notifier)

    @classmethod
    def broker(cls, broker_url, options, notifier=None) -> MQTTClient:
        params = {"brokerUrl": broker_url, "options": dict(options)}
        return cls.create(ProtocolClientConfig(ProtocolType.MQTT, params), notifier)
