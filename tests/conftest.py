"""Shared fixtures: sample configuration and in-memory connections."""

import asyncio
import copy
import json
from typing import Any, Dict, List, Tuple

import pytest

from ads_mqtt.core.exceptions import ControllerReadError, PublishError
from ads_mqtt.models.config_models import BridgeConfig


SAMPLE_CONFIG: Dict[str, Any] = {
    "mqtt": {
        "connection": {
            "brokerUrl": "mqtt://broker.local:1883",
            "options": {"clientId": "bridge-test"},
            "baseTopic": "base/",
            "polling_interval": 1000,
        },
        "topic_mapping": [
            {"site": "seg1"},
            {"line": "seg2"},
        ],
    },
    "plc": {
        "connection": {
            "targetAmsNetId": "192.168.1.10.1.1",
            "targetAdsPort": 851,
            "routerAddress": "192.168.1.10",
        },
        "tags": {
            "Line1": [
                {"tagname": "GVL.Temp", "description": "temperature"},
            ],
        },
    },
}


class FakeController:
    """Stands in for ADSClient: values by symbol name, some names fail."""

    def __init__(self, values: Dict[str, Any], failing=(), delay: float = 0.0):
        self.values = dict(values)
        self.failing = set(failing)
        self.delay = delay
        self.reads: List[str] = []

    async def read_symbol(self, name: str) -> Any:
        self.reads.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.failing or name not in self.values:
            raise ControllerReadError(name, "symbol not found")
        return self.values[name]


class FakeBroker:
    """Stands in for MQTTClient: records publishes, resolves or fails them on demand."""

    def __init__(self, auto_resolve: bool = True, fail_topics=()):
        self.auto_resolve = auto_resolve
        self.fail_topics = set(fail_topics)
        self.published: List[Tuple[str, str]] = []
        self.futures: List[asyncio.Future] = []

    def publish(self, topic: str, payload: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.published.append((topic, payload))
        self.futures.append(future)
        if topic in self.fail_topics:
            future.set_exception(PublishError(topic, "broker said no"))
        elif self.auto_resolve:
            future.set_result(None)
        return future

    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(body) for _, body in self.published]


@pytest.fixture
def config_dict() -> Dict[str, Any]:
    """Deep copy of the sample configuration, safe to mutate."""
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def bridge_config(config_dict) -> BridgeConfig:
    return BridgeConfig.from_dict(config_dict)


@pytest.fixture
def config_file(tmp_path, config_dict):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_dict), encoding="utf-8")
    return path


def make_config(tags: Dict[str, List[Dict[str, str]]], polling_interval: int = 1000) -> BridgeConfig:
    data = copy.deepcopy(SAMPLE_CONFIG)
    data["plc"]["tags"] = tags
    data["mqtt"]["connection"]["polling_interval"] = polling_interval
    return BridgeConfig.from_dict(data)
