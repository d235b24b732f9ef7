"""
Time Range Serialization

Stored time ranges must be:
- Plain: only JSON-compatible values, so any key-value store can hold them
- Roundtrip-safe: TimeRange -> dict -> TimeRange retains every field

Field names follow what the surrounding layer already stores
(``start``, ``end``, ``source``, ``capturedAt``).
"""

from __future__ import annotations

import json
from typing import Any, Dict

from timekeeper.model import Encoding, SchemeTag, TimeRange


def to_dict(time_range: TimeRange) -> Dict[str, Any]:
    """
    Convert a time range to a plain dictionary.

    Optional fields that are unset are omitted.
    """
    data: Dict[str, Any] = {
        "start": time_range.start,
        "end": time_range.end,
        "source": time_range.source,
        "encoding": time_range.encoding.value,
    }
    if time_range.scheme is not None:
        data["scheme"] = time_range.scheme.value
    if time_range.captured_at is not None:
        data["capturedAt"] = time_range.captured_at
    if time_range.duration is not None:
        data["duration"] = time_range.duration
    if time_range.unit is not None:
        data["unit"] = time_range.unit
    return data


def from_dict(data: Dict[str, Any]) -> TimeRange:
    """
    Reconstruct a time range from a dictionary.

    Raises:
        ValueError: If required fields are missing or malformed.
    """
    try:
        scheme = data.get("scheme")
        return TimeRange(
            start=int(data["start"]),
            end=int(data["end"]),
            source=data.get("source") or "Manual",
            scheme=SchemeTag(scheme) if scheme is not None else None,
            encoding=Encoding(data.get("encoding", Encoding.ABSOLUTE.value)),
            captured_at=int(data["capturedAt"]) if data.get("capturedAt") is not None else None,
            duration=data.get("duration"),
            unit=data.get("unit"),
        )
    except KeyError as e:
        raise ValueError(f"Missing required field: {e}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid data format: {e}")


def to_json(time_range: TimeRange, indent: int | None = None) -> str:
    return json.dumps(to_dict(time_range), indent=indent)


def from_json(json_str: str) -> TimeRange:
    """
    Deserialize a time range from JSON.

    Raises:
        ValueError: If the JSON is invalid or missing required fields.
    """
    data = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError("Time range JSON must be an object")
    return from_dict(data)
