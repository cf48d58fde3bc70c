from typing import Any, Dict, List, Optional
import asyncio
import logging
import signal

from ads_mqtt.core.exceptions import ConfigurationError, ControllerConnectError
from ads_mqtt.core.patterns.observer import (
    ConnectionEvent,
    ConnectionObserver,
    ConnectionState,
    ConnectionStateNotifier,
)
from ads_mqtt.models.config_models import BridgeConfig
from ads_mqtt.protocols.ads_client import ADSClient
from ads_mqtt.protocols.base_protocol_client import ProtocolType
from ads_mqtt.protocols.mqtt_client import MQTTClient
from ads_mqtt.protocols.protocol_factory import ProtocolFactory
from .scheduler import AcquisitionScheduler
from .state_machine import BridgeStateMachine, BridgeState

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_CONTROLLER_CONNECT_ERROR = 2


class BridgeOrchestrator(ConnectionObserver):
    """Owns both connections and walks the bridge through its lifecycle.

    IDLE -> CONNECTING -> POLLING -> STOPPING -> STOPPED, with
    CONNECTING -> STOPPING when startup fails or termination comes first.
    """

    def __init__(self,
                 config: BridgeConfig,
                 controller: Optional[ADSClient] = None,
                 broker: Optional[MQTTClient] = None,
                 notifier: Optional[ConnectionStateNotifier] = None):
        self.config = config
        self.notifier = notifier or ConnectionStateNotifier()
        self.controller = controller or ProtocolFactory.controller(config.plc.connection, self.notifier)
        self.broker = broker or ProtocolFactory.broker(
            config.mqtt.connection.broker_url, config.mqtt.connection.options, self.notifier
        )
        self.scheduler = AcquisitionScheduler(config, self.controller, self.broker)
        self.state_machine = BridgeStateMachine()
        self.exit_code = EXIT_OK
        self.logger = logging.getLogger(self.__class__.__name__)
        self._stop_requested = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self.notifier.subscribe(self)

    @property
    def state(self) -> BridgeState:
        return self.state_machine.current_state

    async def startup(self) -> bool:
        """Bring up both links; True once polling has started (or a stop is already pending)."""
        if not self.state_machine.transition_to(BridgeState.CONNECTING):
            return False

        self.logger.info("Starting PLC to MQTT integration...")

        try:
            self.broker.validate()
            self.controller.validate()
        except ConfigurationError as e:
            self.exit_code = EXIT_CONFIG_ERROR
            self.logger.error(f"Invalid connection configuration: {e}. Application Aborted.")
            return False

        # broker first: its outcome arrives later as a notification
        try:
            await self.broker.connect()
        except ConfigurationError as e:
            self.exit_code = EXIT_CONFIG_ERROR
            self.logger.error(f"Invalid MQTT configuration: {e}. Application Aborted.")
            return False
        except Exception as e:
            self.logger.error(f"MQTT connection error: {e}")

        try:
            await self.controller.connect()
        except ConfigurationError as e:
            self.exit_code = EXIT_CONFIG_ERROR
            self.logger.error(f"Invalid PLC configuration: {e}. Application Aborted.")
            return False
        except ControllerConnectError as e:
            self.exit_code = EXIT_CONTROLLER_CONNECT_ERROR
            self.logger.error(f"Error connecting to Beckhoff PLC: {e}")
            return False

        self.logger.info("Connected to Beckhoff PLC")

        if self._stop_requested.is_set():
            return True

        self.state_machine.transition_to(BridgeState.POLLING)
        self.scheduler.start()
        return True

    def request_shutdown(self) -> None:
        """The one termination request. Repeated calls are ignored."""
        if not self._stop_requested.is_set():
            self.logger.info("Termination requested")
            self._stop_requested.set()

    async def shutdown(self) -> None:
        """Stop ticking, then release controller and broker. In-flight work is abandoned."""
        if self.state_machine.is_stopping:
            return
        self.state_machine.transition_to(BridgeState.STOPPING)

        self.logger.info("Disconnecting services...")
        await self.scheduler.stop()
        await self.controller.disconnect()
        await self.broker.disconnect()

        self.state_machine.transition_to(BridgeState.STOPPED)
        self.logger.info("Disconnected ADS and MQTT clients. Exiting.")

    async def run(self) -> int:
        """Startup, poll until termination, shutdown. Returns the exit status."""
        try:
            if await self.startup():
                await self._stop_requested.wait()
        finally:
            await self.shutdown()
        return self.exit_code

    # --------------------------------------------------------------------- #
    #  Signals
    # --------------------------------------------------------------------- #
    def install_signal_handlers(self) -> None:
        self._loop = asyncio.get_running_loop()
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        self.logger.info(f"Received signal {signum}, shutting down gracefully...")
        self._loop.call_soon_threadsafe(self.request_shutdown)

    # --------------------------------------------------------------------- #
    #  Observer interface
    # --------------------------------------------------------------------- #
    def get_observer_id(self) -> str:
        return "orchestrator"

    def get_interested_states(self) -> List[ConnectionState]:
        return [ConnectionState.CONNECTED, ConnectionState.ERROR, ConnectionState.DISCONNECTED]

    async def notify(self, event: ConnectionEvent) -> None:
        if event.source != ProtocolType.MQTT.value:
            return
        if event.state == ConnectionState.CONNECTED:
            self.logger.info("Connected to MQTT broker")
        elif event.state == ConnectionState.ERROR:
            self.logger.error(f"MQTT connection error: {event.error}")
        elif event.error is not None:
            self.logger.warning(f"{event.error}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.name,
            "controller": self.controller.get_stats(),
            "broker": self.broker.get_stats(),
            "scheduler": self.scheduler.get_stats(),
        }
