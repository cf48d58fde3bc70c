"""Topic resolution: configuration -> MQTT topic per payload group."""

from typing import Dict, Iterable

from ads_mqtt.models.config_models import BridgeConfig


def join_topic_mapping(topic_mapping: Iterable[Dict[str, str]]) -> str:
    """Join the value of every single-entry mapping with '/' in order."""
    return "/".join(next(iter(entry.values())) for entry in topic_mapping)


def resolve_topic(config: BridgeConfig, group_name: str) -> str:
    """Return ``baseTopic + joined mapping + '/' + group_name``.

    ``baseTopic`` is used verbatim, so it carries its own trailing '/' when
    one is wanted between it and the first mapping segment.
    """
    base_topic = config.mqtt.connection.base_topic
    joined_mapping = join_topic_mapping(config.mqtt.topic_mapping)
    return f"{base_topic}{joined_mapping}/{group_name}"
