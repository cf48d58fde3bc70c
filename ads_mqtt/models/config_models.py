from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union
import json
import logging

from ads_mqtt.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


###############################################################################
# 1. TAG ----------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class Tag:
    """One controller symbol and the payload key its value is published under."""
    tagname: str                      # e.g. "GVL.Temperature"
    description: str                  # e.g. "temperature"

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_dict(cls, row: Dict[str, Any], where: str) -> "Tag":
        if not isinstance(row, dict):
            raise ConfigurationError(f"{where}: tag must be an object, got {type(row).__name__}")
        return cls(
            tagname     = _require_str(row, "tagname", where),
            description = _require_str(row, "description", where),
        )

###############################################################################
# 2. MQTT SECTION -------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class MqttConnectionConfig:
    """Projection of ``mqtt.connection``."""
    broker_url: str
    base_topic: str
    polling_interval: int             # milliseconds, > 0
    options: Dict[str, Any] = field(default_factory=dict)

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "MqttConnectionConfig":
        where = "mqtt.connection"
        row = _require_dict(row, where)
        interval = row.get("polling_interval")
        # bool is an int subclass; true/false is not an interval
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ConfigurationError(f"{where}.polling_interval must be a positive integer (ms), got {interval!r}")
        options = row.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigurationError(f"{where}.options must be an object")
        return cls(
            broker_url       = _require_str(row, "brokerUrl", where),
            base_topic       = _require_str(row, "baseTopic", where, allow_empty=True),
            polling_interval = interval,
            options          = options,
        )


@dataclass(frozen=True, slots=True)
class MqttConfig:
    connection: MqttConnectionConfig
    topic_mapping: Tuple[Dict[str, str], ...] = ()

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "MqttConfig":
        row = _require_dict(row, "mqtt")
        raw_mapping = row.get("topic_mapping", [])
        if not isinstance(raw_mapping, list):
            raise ConfigurationError("mqtt.topic_mapping must be a list")
        mapping: List[Dict[str, str]] = []
        for i, entry in enumerate(raw_mapping):
            if not isinstance(entry, dict) or len(entry) != 1:
                raise ConfigurationError(
                    f"mqtt.topic_mapping[{i}] must be an object with exactly one key, got {entry!r}"
                )
            (key, value), = entry.items()
            if not isinstance(value, str):
                raise ConfigurationError(f"mqtt.topic_mapping[{i}].{key} must be a string")
            mapping.append({key: value})
        return cls(
            connection    = MqttConnectionConfig.from_dict(row.get("connection")),
            topic_mapping = tuple(mapping),
        )

###############################################################################
# 3. PLC SECTION --------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class PlcConfig:
    """Projection of ``plc``; ``connection`` stays opaque to the scheduler."""
    connection: Dict[str, Any]
    tags: Dict[str, Tuple[Tag, ...]]  # group name -> tags, configuration order

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "PlcConfig":
        row = _require_dict(row, "plc")
        connection = _require_dict(row.get("connection"), "plc.connection")
        raw_tags = _require_dict(row.get("tags"), "plc.tags")

        tags: Dict[str, Tuple[Tag, ...]] = {}
        for group, entries in raw_tags.items():
            where = f"plc.tags.{group}"
            if not isinstance(entries, list):
                raise ConfigurationError(f"{where} must be a list of tags")
            group_tags = tuple(
                Tag.from_dict(entry, f"{where}[{i}]") for i, entry in enumerate(entries)
            )
            _warn_duplicate_descriptions(group, group_tags)
            tags[group] = group_tags

        return cls(connection=connection, tags=tags)

###############################################################################
# 4. ROOT ---------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Immutable snapshot of ``config.json`` for the lifetime of the process."""
    mqtt: MqttConfig
    plc: PlcConfig

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "BridgeConfig":
        row = _require_dict(row, "configuration root")
        return cls(
            mqtt = MqttConfig.from_dict(row.get("mqtt")),
            plc  = PlcConfig.from_dict(row.get("plc")),
        )

    @property
    def polling_interval(self) -> int:
        return self.mqtt.connection.polling_interval


def load_config(path: Union[str, Path]) -> BridgeConfig:
    """Read and validate the JSON configuration file.

    Raises:
        ConfigurationError: the file is missing, unreadable, empty, not JSON,
            or does not have the expected structure.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not raw.strip():
        raise ConfigurationError(f"{path} is empty")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is not valid JSON: {e}") from e

    return BridgeConfig.from_dict(data)

###############################################################################
# 5. HELPER PARSERS -----------------------------------------------------------
###############################################################################

def _require_dict(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where} must be an object")
    return value

def _require_str(row: Dict[str, Any], key: str, where: str, allow_empty: bool = False) -> str:
    value = row.get(key)
    if not isinstance(value, str) or (not allow_empty and not value):
        kind = "a string" if allow_empty else "a non-empty string"
        raise ConfigurationError(f"{where}.{key} must be {kind}")
    return value

def _warn_duplicate_descriptions(group: str, tags: Tuple[Tag, ...]) -> None:
    seen = set()
    for tag in tags:
        if tag.description in seen:
            logger.warning(
                "Group '%s' uses description '%s' more than once; the last read wins",
                group, tag.description,
            )
        if tag.description == "timestamp":
            logger.warning(
                "Group '%s' has a tag described as 'timestamp'; its value is discarded and "
                "the payload timestamp (assembly time) is published instead",
                group,
            )
        seen.add(tag.description)
