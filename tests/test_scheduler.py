"""Tests for the acquisition scheduler."""

import asyncio
import logging
import re

import pytest

from conftest import FakeBroker, FakeController, make_config

from ads_mqtt.core.exceptions import PublishError
from ads_mqtt.orchestration.scheduler import AcquisitionScheduler

ISO_UTC_MS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _two_groups():
    return make_config({
        "Line1": [
            {"tagname": "GVL.Temp", "description": "temperature"},
            {"tagname": "GVL.Running", "description": "running"},
        ],
        "Counters": [
            {"tagname": "GVL.Count", "description": "count"},
        ],
    })


# ============================================================================
# Single tick
# ============================================================================

class TestPollOnce:

    @pytest.mark.asyncio
    async def test_publishes_group_to_resolved_topic(self, bridge_config):
        controller = FakeController({"GVL.Temp": 23.5})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(bridge_config, controller, broker)

        await scheduler.poll_once()

        assert [topic for topic, _ in broker.published] == ["base/seg1/seg2/Line1"]
        body = broker.bodies()[0]
        assert list(body) == ["timestamp", "temperature"]
        assert body["temperature"] == 23.5
        assert ISO_UTC_MS.match(body["timestamp"])

    @pytest.mark.asyncio
    async def test_groups_and_tags_read_in_configuration_order(self):
        controller = FakeController({"GVL.Temp": 1.0, "GVL.Running": True, "GVL.Count": 7})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(_two_groups(), controller, broker)

        await scheduler.poll_once()

        assert controller.reads == ["GVL.Temp", "GVL.Running", "GVL.Count"]
        assert [topic for topic, _ in broker.published] == [
            "base/seg1/seg2/Line1",
            "base/seg1/seg2/Counters",
        ]
        assert broker.bodies()[1]["count"] == 7

    @pytest.mark.asyncio
    async def test_failed_read_drops_whole_group(self, caplog):
        # second tag of Line1 fails; its first value must not leak out
        controller = FakeController({"GVL.Temp": 1.0, "GVL.Count": 7}, failing={"GVL.Running"})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(_two_groups(), controller, broker)

        with caplog.at_level(logging.ERROR):
            await scheduler.poll_once()

        assert [topic for topic, _ in broker.published] == ["base/seg1/seg2/Counters"]
        assert all("temperature" not in body for body in broker.bodies())
        assert scheduler.dropped_group_count == 1
        assert "GVL.Running" in caplog.text

    @pytest.mark.asyncio
    async def test_dropped_group_recovers_next_tick(self):
        controller = FakeController({"GVL.Temp": 1.0, "GVL.Count": 7}, failing={"GVL.Running"})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(_two_groups(), controller, broker)

        await scheduler.poll_once()
        controller.failing.clear()
        controller.values["GVL.Running"] = False
        await scheduler.poll_once()

        assert len(broker.published) == 3
        assert broker.bodies()[-2]["running"] is False

    @pytest.mark.asyncio
    async def test_each_tick_builds_fresh_payload(self, bridge_config):
        controller = FakeController({"GVL.Temp": 1.0})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(bridge_config, controller, broker)

        await scheduler.poll_once()
        controller.values["GVL.Temp"] = 2.0
        await scheduler.poll_once()

        assert [body["temperature"] for body in broker.bodies()] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained_to_group(self, caplog):
        controller = FakeController({"GVL.Temp": 1.0, "GVL.Running": True, "GVL.Count": 7})
        broker = FakeBroker()
        calls = []

        def publish(topic, payload):
            calls.append(topic)
            if topic.endswith("Line1"):
                raise RuntimeError("boom")
            return FakeBroker.publish(broker, topic, payload)

        broker.publish = publish
        scheduler = AcquisitionScheduler(_two_groups(), controller, broker)

        with caplog.at_level(logging.ERROR):
            await scheduler.poll_once()

        assert calls == ["base/seg1/seg2/Line1", "base/seg1/seg2/Counters"]
        assert [topic for topic, _ in broker.published] == ["base/seg1/seg2/Counters"]
        assert "Error reading ADS data or publishing to MQTT for group 'Line1'" in caplog.text


# ============================================================================
# Publish outcome
# ============================================================================

class TestPublishOutcome:

    @pytest.mark.asyncio
    async def test_publish_is_not_awaited(self, bridge_config):
        controller = FakeController({"GVL.Temp": 1.0})
        broker = FakeBroker(auto_resolve=False)
        scheduler = AcquisitionScheduler(bridge_config, controller, broker)

        futures = await scheduler.poll_once()

        assert len(futures) == 1
        assert not futures[0].done()
        assert scheduler.published_count == 0

        futures[0].set_result(None)
        await asyncio.sleep(0)
        assert scheduler.published_count == 1

    @pytest.mark.asyncio
    async def test_publish_error_is_logged_and_ticks_continue(self, bridge_config, caplog):
        controller = FakeController({"GVL.Temp": 1.0})
        broker = FakeBroker(fail_topics={"base/seg1/seg2/Line1"})
        scheduler = AcquisitionScheduler(bridge_config, controller, broker)

        with caplog.at_level(logging.ERROR):
            await scheduler.poll_once()
            await asyncio.sleep(0)

        assert scheduler.publish_error_count == 1
        assert "Failed to publish to topic base/seg1/seg2/Line1" in caplog.text

        broker.fail_topics.clear()
        await scheduler.poll_once()
        await asyncio.sleep(0)

        assert scheduler.published_count == 1
        assert len(broker.published) == 2

    @pytest.mark.asyncio
    async def test_late_failure_after_next_tick(self, bridge_config):
        controller = FakeController({"GVL.Temp": 1.0})
        broker = FakeBroker(auto_resolve=False)
        scheduler = AcquisitionScheduler(bridge_config, controller, broker)

        first = (await scheduler.poll_once())[0]
        second = (await scheduler.poll_once())[0]
        first.set_exception(PublishError("base/seg1/seg2/Line1", "timeout"))
        second.set_result(None)
        await asyncio.sleep(0)

        assert scheduler.publish_error_count == 1
        assert scheduler.published_count == 1


# ============================================================================
# Trigger integration
# ============================================================================

class TestScheduling:

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self):
        controller = FakeController({"GVL.Temp": 1.0})
        broker = FakeBroker()
        scheduler = AcquisitionScheduler(make_config(
            {"Line1": [{"tagname": "GVL.Temp", "description": "temperature"}]}, polling_interval=10,
        ), controller, broker)

        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.1)
        await scheduler.stop()
        ticks = scheduler.tick_count

        assert not scheduler.running
        assert ticks >= 2

        await asyncio.sleep(0.05)
        assert scheduler.tick_count == ticks

    def test_default_trigger_uses_polling_interval(self):
        scheduler = AcquisitionScheduler(make_config({}, polling_interval=250), FakeController({}), FakeBroker())
        assert scheduler.trigger.interval_seconds == 0.25

    @pytest.mark.asyncio
    async def test_stats(self, bridge_config):
        scheduler = AcquisitionScheduler(bridge_config, FakeController({"GVL.Temp": 1.0}), FakeBroker())
        await scheduler.poll_once()
        await asyncio.sleep(0)

        stats = scheduler.get_stats()
        assert stats["ticks"] == 1
        assert stats["published"] == 1
        assert stats["dropped_groups"] == 0
