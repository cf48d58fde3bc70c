from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Tuple, Union
import json
import math

# Value kinds pyads hands back for symbol reads. Structured symbols come back
# as lists/dicts, STRING as str, TIME/DATE types may arrive as date/time objects.
# Raw byte buffers are published as a plain list of ints, not as a
# {"type": "Buffer", "data": [...]} wrapper.
TagValue = Union[bool, int, float, str, None, bytes, date, time, List[Any], Dict[str, Any]]

TIMESTAMP_KEY = "timestamp"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC instant with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Payload:
    """Values read for one payload group during one tick.

    Fields keep the order in which their keys were first set. Setting a key
    again replaces the value in place.
    """
    group: str
    fields: List[Tuple[str, TagValue]] = field(default_factory=list)
    timestamp: Optional[str] = None

    def set(self, key: str, value: TagValue) -> None:
        for i, (existing, _) in enumerate(self.fields):
            if existing == key:
                self.fields[i] = (key, value)
                return
        self.fields.append((key, value))

    def keys(self) -> List[str]:
        return [key for key, _ in self.fields]

    def stamp(self, now: Optional[datetime] = None) -> "Payload":
        """Record the assembly instant; called once all reads are done."""
        self.timestamp = utc_timestamp(now)
        return self

    def as_dict(self) -> Dict[str, Any]:
        if self.timestamp is None:
            raise ValueError(f"payload for group '{self.group}' has not been stamped")
        body: Dict[str, Any] = {TIMESTAMP_KEY: self.timestamp}
        for key, value in self.fields:
            # a tag described "timestamp" is dropped; the assembly instant is never overwritten
            if key == TIMESTAMP_KEY:
                continue
            body[key] = _sanitize(value)
        return body

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), default=_json_default, separators=(",", ":"))

    def __len__(self) -> int:
        return len(self.fields)


def _sanitize(value: Any) -> Any:
    """Map non-finite floats to null, as JSON has no NaN/Infinity."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_sanitize(v) for v in value]
    if isinstance(value, dict):
        return {k: _sanitize(v) for k, v in value.items()}
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
