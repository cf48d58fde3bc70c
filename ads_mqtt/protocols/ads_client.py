"""
ADS Protocol Client Implementation
Controller connection to a Beckhoff TwinCAT PLC, built on pyads
"""

import asyncio
import functools
from typing import Any, Callable, Optional

import pyads

from ads_mqtt.core.exceptions import ConfigurationError, ControllerConnectError, ControllerReadError
from ads_mqtt.core.patterns.observer import ConnectionState, ConnectionStateNotifier
from ads_mqtt.protocols.base_protocol_client import BaseProtocolClient, ProtocolClientConfig, ProtocolType


class ADSClient(BaseProtocolClient):
    """
    Session to one ADS device.

    pyads is blocking, so every call runs in the default executor. Calls are
    serialised through one lock: ticks may overlap, the ADS port may not be
    used from two threads at once.
    """

    DEFAULT_ADS_PORT = 851             # TwinCAT 3 PLC runtime 1

    def __init__(self, config: ProtocolClientConfig, notifier: Optional[ConnectionStateNotifier] = None):
        if config.protocol_type != ProtocolType.ADS:
            raise ValueError("Config must be for ADS protocol")

        super().__init__(config, notifier)

        # ADS-specific attributes
        self.plc: Optional[pyads.Connection] = None
        self._io_lock = asyncio.Lock()
        self.read_count = 0
        self.read_error_count = 0

        self._parse_ads_config()

    def _parse_ads_config(self):
        """Parse ADS connection parameters (ads-client naming)."""
        params = self.config.connection_params

        self.ams_net_id = params.get('targetAmsNetId')
        self.ams_port = params.get('targetAdsPort', self.DEFAULT_ADS_PORT)
        self.ip_address = params.get('routerAddress')
        self.local_ams_net_id = params.get('localAmsNetId')
        self.timeout_ms = params.get('timeoutDelay')

    def _validate_config(self):
        if not self.ams_net_id:
            raise ConfigurationError("plc.connection.targetAmsNetId is required")

        if not isinstance(self.ams_port, int) or not (1 <= self.ams_port <= 65535):
            raise ConfigurationError("plc.connection.targetAdsPort must be a valid ADS port number")

    async def _initialize_client(self):
        if self.local_ams_net_id:
            pyads.set_local_address(self.local_ams_net_id)

        self.plc = pyads.Connection(self.ams_net_id, self.ams_port, self.ip_address)
        self.logger.debug(f"ADS client initialized for {self.ams_net_id}:{self.ams_port}")

    async def _connect(self):
        """Open the ADS port and prove the route by reading the device state."""
        self.logger.info(f"Connecting to ADS device {self.ams_net_id}:{self.ams_port}"
                         + (f" via {self.ip_address}" if self.ip_address else ""))
        try:
            ads_state, device_state = await self._run_blocking(self._open_and_verify)
        except Exception as e:
            self._set_state(ConnectionState.ERROR, e)
            await self._close_quietly()
            raise ControllerConnectError(
                f"Cannot connect to ADS device {self.ams_net_id}:{self.ams_port}: {e}"
            ) from e

        self._set_state(ConnectionState.CONNECTED)
        self.logger.info(f"ADS device state: ads_state={ads_state} device_state={device_state}")

    def _open_and_verify(self):
        self.plc.open()
        if self.timeout_ms:
            self.plc.set_timeout(int(self.timeout_ms))
        return self.plc.read_state()

    async def _disconnect(self):
        if self.plc is not None and self.plc.is_open:
            await self._run_blocking(self.plc.close)
            self.logger.info("Disconnected from ADS device")

    async def _close_quietly(self):
        try:
            if self.plc is not None and self.plc.is_open:
                await self._run_blocking(self.plc.close)
        except Exception as e:
            self.logger.debug(f"Ignoring error while closing ADS port: {e}")

    async def read_symbol(self, name: str) -> Any:
        """Read one symbol by name; the data type is looked up on the PLC."""
        if self.plc is None or not self.is_connected():
            self.read_error_count += 1
            raise ControllerReadError(name, "ADS session is not active")

        try:
            value = await self._run_blocking(self.plc.read_by_name, name)
        except pyads.ADSError as e:
            self.read_error_count += 1
            raise ControllerReadError(name, f"ADS error {e}") from e
        except Exception as e:
            self.read_error_count += 1
            raise ControllerReadError(name, str(e)) from e

        self.read_count += 1
        return value

    async def _run_blocking(self, fn: Callable, *args) -> Any:
        async with self._io_lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, functools.partial(fn, *args))

    def get_stats(self):
        stats = super().get_stats()
        stats.update({
            "ams_net_id": self.ams_net_id,
            "ams_port": self.ams_port,
            "reads": self.read_count,
            "read_errors": self.read_error_count,
        })
        return stats
