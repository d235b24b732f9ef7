"""
Display helpers for the surrounding panel.

The engine returns structured values and failures; turning them into
text people read happens here.
"""

from __future__ import annotations

from typing import Optional

from timekeeper.model import Failure, FailureReason, SchemeTag, TimeRange
from timekeeper.timeutil import Zone, from_epoch_ms, parse_instant
from timekeeper.validation import validate_range


def format_datetime(ms: Optional[int], tz: Zone) -> str:
    """``2024/01/02 15:04:05`` in 24-hour wall-clock time, ``--`` when absent
    or outside the calendar."""
    if ms is None:
        return "--"
    try:
        return from_epoch_ms(ms, tz).strftime("%Y/%m/%d %H:%M:%S")
    except ValueError:
        return "--"


def format_duration(start: Optional[int], end: Optional[int]) -> str:
    """Span between two instants as ``1h 30m``, ``45s`` or ``0s``."""
    if start is None or end is None:
        return "--"
    diff = abs(end - start)
    hours = diff // 3_600_000
    minutes = (diff % 3_600_000) // 60_000
    seconds = (diff % 60_000) // 1000
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if seconds > 0 or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def format_relative_time(ms: Optional[int], now_ms: int) -> str:
    """How long ago ``ms`` was: ``just now``, ``5m ago``, ``3h ago``, ``2d ago``."""
    if ms is None:
        return ""
    minutes = (now_ms - ms) // 60_000
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def to_local_input(ms: int, tz: Zone) -> str:
    """``YYYY-MM-DDTHH:MM:SS`` for pre-filling a date-time input."""
    return from_epoch_ms(ms, tz).strftime("%Y-%m-%dT%H:%M:%S")


def summarize(time_range: TimeRange, tz: Zone) -> str:
    """One line: ``source: start - end (duration)``."""
    return "{}: {} - {} ({})".format(
        time_range.source or "Manual",
        format_datetime(time_range.start, tz),
        format_datetime(time_range.end, tz),
        format_duration(time_range.start, time_range.end),
    )


def manual_range(start_text: str, end_text: str, tz: Zone, captured_at: Optional[int] = None) -> TimeRange:
    """
    Build a validated absolute range from two typed-in instants.

    Raises:
        TimeRangeValidationError: If either text is not a date-time or
            start is not before end.
    """
    start = parse_instant(start_text.strip(), tz) if start_text else None
    end = parse_instant(end_text.strip(), tz) if end_text else None
    time_range = TimeRange(
        start=start,  # type: ignore[arg-type]
        end=end,  # type: ignore[arg-type]
        source="Manual",
        captured_at=captured_at,
    )
    validate_range(time_range)
    return time_range


def describe_failure(failure: Failure, scheme: SchemeTag, action: str = "capture") -> str:
    """User-facing message for a failed capture or apply."""
    if not scheme.supported:
        if action == "capture":
            return "This page is not supported for automatic time capture. Use manual input."
        return "This page is not supported for automatic time application."
    if failure.reason == FailureReason.NO_MATCH and action == "capture":
        return "Could not extract time range from current page URL."
    if failure.reason == FailureReason.NO_MATCH:
        return "Could not apply time range to current page URL."
    if failure.reason == FailureReason.UNSUPPORTED_VALUE:
        return "The page's time setting is in a form that cannot be read."
    return "The page's time setting could not be decoded."
