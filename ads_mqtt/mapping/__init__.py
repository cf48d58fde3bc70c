"""Mapping of configuration onto MQTT topics."""

from .topic_resolver import resolve_topic, join_topic_mapping

__all__ = [
    'resolve_topic',
    'join_topic_mapping'
]
