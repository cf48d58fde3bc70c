"""Acquisition loop: read every payload group from the PLC, publish each one."""
from __future__ import annotations
import asyncio
import functools
import logging
from typing import Any, Dict, List, Optional, Sequence

from ads_mqtt.core.exceptions import ControllerReadError
from ads_mqtt.mapping.topic_resolver import resolve_topic
from ads_mqtt.models.config_models import BridgeConfig, Tag
from ads_mqtt.models.payload import Payload
from ads_mqtt.protocols.ads_client import ADSClient
from ads_mqtt.protocols.mqtt_client import MQTTClient
from ads_mqtt.triggers import IntervalTrigger, TriggerStrategy


class AcquisitionScheduler:
    """
    Drives the polling ticks.

    A tick walks the payload groups in configuration order and the tags of a
    group in list order, awaiting one read at a time. A failed read drops
    that group for that tick only. Publishing is dispatched and never awaited.
    """

    def __init__(self,
                 config: BridgeConfig,
                 controller: ADSClient,
                 broker: MQTTClient,
                 trigger: Optional[TriggerStrategy] = None):
        self.config = config
        self.controller = controller
        self.broker = broker
        self.trigger = trigger or IntervalTrigger({"interval_ms": config.polling_interval})
        self.log = logging.getLogger(self.__class__.__name__)

        self.tick_count = 0
        self.published_count = 0
        self.dropped_group_count = 0
        self.publish_error_count = 0

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    def start(self) -> None:
        self.log.info("polling %d payload groups every %d ms",
                      len(self.config.plc.tags), self.config.polling_interval)
        self.trigger.start(self.poll_once)

    async def stop(self) -> None:
        """Stop scheduling ticks. Ticks already running are not cancelled."""
        await self.trigger.stop()

    @property
    def running(self) -> bool:
        return self.trigger.running

    async def poll_once(self) -> List[asyncio.Future]:
        """Run one tick; returns the publish futures it dispatched."""
        self.tick_count += 1
        dispatched: List[asyncio.Future] = []

        for group_name, tags in self.config.plc.tags.items():
            try:
                payload = await self._read_group(group_name, tags)
                if payload is not None:
                    dispatched.append(self._publish(payload))
            except Exception as e:
                self.dropped_group_count += 1
                self.log.error("Error reading ADS data or publishing to MQTT for group '%s': %s",
                               group_name, e, exc_info=True)

        return dispatched

    def get_stats(self) -> Dict[str, Any]:
        return {
            "ticks": self.tick_count,
            "published": self.published_count,
            "dropped_groups": self.dropped_group_count,
            "publish_errors": self.publish_error_count,
            "trigger": self.trigger.get_execution_metadata(),
        }

    # --------------------------------------------------------------------- #
    #  Private helpers
    # --------------------------------------------------------------------- #
    async def _read_group(self, group_name: str, tags: Sequence[Tag]) -> Optional[Payload]:
        payload = Payload(group=group_name)

        for tag in tags:
            try:
                value = await self.controller.read_symbol(tag.tagname)
            except ControllerReadError as e:
                self.dropped_group_count += 1
                self.log.error("payload '%s' dropped this tick: %s", group_name, e)
                return None
            payload.set(tag.description, value)

        return payload.stamp()

    def _publish(self, payload: Payload) -> asyncio.Future:
        topic = resolve_topic(self.config, payload.group)
        body = payload.to_json()
        future = self.broker.publish(topic, body)
        future.add_done_callback(functools.partial(self._on_publish_done, topic, body))
        return future

    def _on_publish_done(self, topic: str, body: str, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self.publish_error_count += 1
            self.log.error("%s", error)
        else:
            self.published_count += 1
            self.log.info("Published to %s: %s", topic, body)
