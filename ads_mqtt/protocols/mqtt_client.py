"""
MQTT Protocol Client Implementation
Broker connection: non-blocking connect, fire-and-forget publish
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Dict, Optional, Tuple, Union
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ads_mqtt.core.exceptions import BrokerConnectError, ConfigurationError, PublishError
from ads_mqtt.core.patterns.observer import ConnectionState, ConnectionStateNotifier
from ads_mqtt.protocols.base_protocol_client import BaseProtocolClient, ProtocolClientConfig, ProtocolType


DEFAULT_PORTS = {
    "mqtt": 1883,
    "tcp": 1883,
    "mqtts": 8883,
    "ssl": 8883,
    "ws": 80,
    "wss": 443,
}

PROTOCOL_VERSIONS = {
    3: mqtt.MQTTv31,
    4: mqtt.MQTTv311,
    5: mqtt.MQTTv5,
}


class MQTTClient(BaseProtocolClient):
    """
    Publishing MQTT client on top of paho-mqtt.

    Features:
    - mqtt.js style broker URL and options
    - Non-blocking connect; the outcome arrives as connection state events
    - Background reconnection by paho, surfaced through the notifier
    - publish() returns a future instead of blocking for the broker
    """

    def __init__(self, config: ProtocolClientConfig, notifier: Optional[ConnectionStateNotifier] = None):
        if config.protocol_type != ProtocolType.MQTT:
            raise ValueError("Config must be for MQTT protocol")

        super().__init__(config, notifier)

        # MQTT-specific attributes
        self.client: Optional[mqtt.Client] = None
        self._pending: Dict[int, Tuple[asyncio.Future, str]] = {}
        self._pending_lock = threading.RLock()
        self._closing = False
        self.published_count = 0
        self.publish_error_count = 0

        self._parse_mqtt_config()

    def _parse_mqtt_config(self):
        """Split the broker URL and map mqtt.js option names onto paho settings."""
        params = self.config.connection_params
        options = params.get('options') or {}

        self.broker_url = params.get('brokerUrl', '')
        url = urlparse(self.broker_url)
        self.scheme = (url.scheme or 'mqtt').lower()
        self.broker_host = url.hostname
        try:
            self.broker_port = url.port or DEFAULT_PORTS.get(self.scheme)
        except ValueError:
            self.broker_port = None
        self.transport = 'websockets' if self.scheme in ('ws', 'wss') else 'tcp'
        self.use_tls = self.scheme in ('mqtts', 'ssl', 'wss')
        self.ws_path = url.path or '/'

        self.client_id = options.get('clientId', f"ads_mqtt_{int(datetime.now().timestamp())}")
        self.username = options.get('username', url.username)
        self.password = options.get('password', url.password)
        self.keepalive = int(options.get('keepalive', 60))
        self.clean_session = bool(options.get('clean', True))
        self.reconnect_period_ms = options.get('reconnectPeriod', 1000)
        self.connect_timeout_ms = options.get('connectTimeout', 30000)
        self.protocol_version = options.get('protocolVersion', 4)
        self.qos = options.get('qos', 0)
        self.retain = bool(options.get('retain', False))

    def _validate_config(self):
        """Validate MQTT-specific configuration."""
        if self.scheme not in DEFAULT_PORTS:
            raise ConfigurationError(f"Unsupported broker URL scheme '{self.scheme}' in {self.broker_url!r}")

        if not self.broker_host:
            raise ConfigurationError(f"MQTT broker host is missing in {self.broker_url!r}")

        if not isinstance(self.broker_port, int) or not (1 <= self.broker_port <= 65535):
            raise ConfigurationError("MQTT broker port must be a valid port number")

        if self.qos not in (0, 1, 2):
            raise ConfigurationError(f"MQTT qos must be 0, 1 or 2, got {self.qos!r}")

        if self.protocol_version not in PROTOCOL_VERSIONS:
            raise ConfigurationError(f"Unsupported MQTT protocolVersion {self.protocol_version!r}")

    async def _initialize_client(self):
        """Initialize the paho client and wire its callbacks."""
        protocol = PROTOCOL_VERSIONS[self.protocol_version]
        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=None if protocol == mqtt.MQTTv5 else self.clean_session,
            protocol=protocol,
            transport=self.transport,
        )

        if self.transport == 'websockets':
            self.client.ws_set_options(path=self.ws_path)

        if self.username:
            self.client.username_pw_set(self.username, self.password)

        if self.use_tls:
            self.client.tls_set()

        if self.reconnect_period_ms:
            min_delay = max(1, round(self.reconnect_period_ms / 1000))
            self.client.reconnect_delay_set(min_delay=min_delay, max_delay=max(min_delay, 120))

        self.client.connect_timeout = self.connect_timeout_ms / 1000

        # Set callbacks
        self.client.on_connect = self._on_connect
        self.client.on_connect_fail = self._on_connect_fail
        self.client.on_disconnect = self._on_disconnect
        self.client.on_publish = self._on_publish
        self.client.on_log = self._on_log

        self.logger.debug(f"MQTT client initialized with ID: {self.client_id}")

    async def _connect(self):
        """Start connecting in the paho network thread and return immediately."""
        self.logger.info(f"Connecting to MQTT broker at {self.broker_host}:{self.broker_port}")
        self._closing = False
        self.client.connect_async(self.broker_host, self.broker_port, keepalive=self.keepalive)
        result = self.client.loop_start()
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise BrokerConnectError(f"Could not start MQTT network loop: {mqtt.error_string(result)}")

    async def _disconnect(self):
        """Disconnect from MQTT broker."""
        self._closing = True
        if self.client:
            self.client.disconnect()
            self.client.loop_stop()
            self.logger.info("Disconnected from MQTT broker")
        self._fail_pending("client disconnected")

    def publish(self, topic: str, payload: Union[str, bytes]) -> asyncio.Future:
        """
        Hand a message to the network thread without waiting for it.

        Returns a future that resolves once paho reports the message sent
        (or acknowledged, for QoS > 0) and fails with PublishError otherwise.
        Must be called from the event loop thread.
        """
        future = asyncio.get_running_loop().create_future()

        if self.client is None:
            self._fail(future, PublishError(topic, "MQTT client is not started"))
            return future

        with self._pending_lock:
            try:
                info = self.client.publish(topic, payload, qos=self.qos, retain=self.retain)
            except ValueError as e:
                self._fail(future, PublishError(topic, str(e)))
                return future

            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                self._fail(future, PublishError(topic, mqtt.error_string(info.rc)))
                return future

            self._pending[info.mid] = (future, topic)

        return future

    def _fail(self, future: asyncio.Future, error: PublishError):
        self.publish_error_count += 1
        future.set_exception(error)

    def _resolve(self, future: asyncio.Future, error: Optional[PublishError] = None):
        if future.done():
            return
        if error is not None:
            self._fail(future, error)
        else:
            self.published_count += 1
            future.set_result(None)

    def _fail_pending(self, reason: str):
        with self._pending_lock:
            pending, self._pending = self._pending, {}
        if self._loop is None or self._loop.is_closed():
            return
        for future, topic in pending.values():
            self._loop.call_soon_threadsafe(self._resolve, future, PublishError(topic, reason))

    # MQTT Event Callbacks (paho network thread)
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Callback for when client connects to broker."""
        if reason_code.is_failure:
            error = BrokerConnectError(f"Connection refused by broker: {reason_code}")
            self._set_state_threadsafe(ConnectionState.ERROR, error)
            if not self.reconnect_period_ms:
                client.loop_stop()
        else:
            self._set_state_threadsafe(ConnectionState.CONNECTED)

    def _on_connect_fail(self, client, userdata):
        """Callback for when the network thread cannot reach the broker."""
        error = BrokerConnectError(f"Cannot reach MQTT broker at {self.broker_host}:{self.broker_port}")
        self._set_state_threadsafe(ConnectionState.ERROR, error)
        if not self.reconnect_period_ms:
            client.loop_stop()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        """Callback for when client disconnects from broker."""
        if self._closing:
            return

        error = BrokerConnectError(f"Unexpected disconnection from MQTT broker ({reason_code})")
        self._set_state_threadsafe(ConnectionState.DISCONNECTED, error)
        self._fail_pending("connection lost")
        if not self.reconnect_period_ms:
            client.loop_stop()

    def _on_publish(self, client, userdata, mid, reason_code, properties):
        """Callback for when a message has left the client (or been acknowledged)."""
        with self._pending_lock:
            entry = self._pending.pop(mid, None)

        if entry is None or self._loop is None or self._loop.is_closed():
            return

        future, topic = entry
        error = None
        if reason_code.is_failure:
            error = PublishError(topic, f"rejected by broker: {reason_code}")
        self._loop.call_soon_threadsafe(self._resolve, future, error)

    def _on_log(self, client, userdata, level, buf):
        """Callback for MQTT client logging."""
        # Map MQTT log levels to Python logging levels
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.DEBUG,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR
        }

        python_level = level_map.get(level, logging.DEBUG)
        self.logger.log(python_level, f"MQTT: {buf}")

    def get_pending_count(self) -> int:
        """Messages handed to paho and not yet reported sent."""
        with self._pending_lock:
            return len(self._pending)

    def get_stats(self):
        stats = super().get_stats()
        stats.update({
            "broker_url": self.broker_url,
            "published": self.published_count,
            "publish_errors": self.publish_error_count,
            "pending": self.get_pending_count(),
        })
        return stats
