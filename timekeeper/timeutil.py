"""
Time helpers shared by the scheme parsers and the display layer.

Covers three things the address schemes keep coming back to:
- timezone resolution for wall-clock text
- the ISO-8601 duration grammar (``-PT3H``, ``P0D``, ``PT1H30M``)
- absolute instants written as ISO-8601 text or epoch numbers
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Union

from zoneinfo import ZoneInfo

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

_DURATION_RE = re.compile(
    r"^(?P<sign>[+-])?P"
    r"(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T?(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$",
    re.IGNORECASE,
)

_EPOCH_RE = re.compile(r"^-?\d+$")

_UNIT_MS = {
    "weeks": 7 * 86_400_000,
    "days": 86_400_000,
    "hours": 3_600_000,
    "minutes": 60_000,
    "seconds": 1_000,
}

SECOND_MS = 1_000


# ---------- Timezones ----------

# A tzinfo, or None for system local time; datetime applies the system's
# DST rules per instant when tz is None.
Zone = Optional[dt.tzinfo]

LOCAL = "local"
_LOCAL_ALIASES = frozenset({"local", "system"})
_UTC_ALIASES = frozenset({"utc", "z", "gmt"})


def normalize_tz_name(name: Optional[str]) -> str:
    """Canonical zone name: "local", "UTC", a fixed offset or an IANA name."""
    text = "" if name is None else str(name).strip()
    if not text or text.lower() in _LOCAL_ALIASES:
        return LOCAL
    if text.lower() in _UTC_ALIASES:
        return "UTC"
    return text


def _fixed_offset(name: str) -> Optional[dt.tzinfo]:
    m = _OFFSET_RE.match(name)
    if not m:
        return None
    sign, hours, minutes = m.group(1), int(m.group(2)), int(m.group(3))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid timezone offset: {name!r}")
    offset = dt.timedelta(hours=hours, minutes=minutes)
    return dt.timezone(-offset if sign == "-" else offset)


def resolve_tz(name: Optional[str]) -> Zone:
    """
    Resolve a zone name.

    Returns None for "local" so callers get the system's rules for each
    instant rather than today's offset.

    Raises:
        ValueError: For unknown identifiers.
    """
    tz_name = normalize_tz_name(name)
    if tz_name == LOCAL:
        return None
    if tz_name == "UTC":
        return dt.timezone.utc

    fixed = _fixed_offset(tz_name)
    if fixed is not None:
        return fixed

    try:
        return ZoneInfo(tz_name)
    except Exception as ex:
        raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex


# ---------- Durations ----------


def parse_duration(text: str) -> Optional[int]:
    """
    Parse an ISO-8601 style duration into signed milliseconds.

    Accepts an optional sign, the ``P`` marker, optional week/day groups and
    optional hour/minute/second groups (with or without ``T``). At least one
    group must be present; ``P`` alone, or anything else, yields None.

    Examples::

        >>> parse_duration("-PT3H")
        -10800000
        >>> parse_duration("PT1H30M")
        5400000
        >>> parse_duration("P0D")
        0
    """
    if not isinstance(text, str):
        return None
    m = _DURATION_RE.match(text.strip())
    if not m:
        return None
    groups = {k: m.group(k) for k in _UNIT_MS}
    if all(v is None for v in groups.values()):
        return None
    total = sum(int(v) * _UNIT_MS[k] for k, v in groups.items() if v is not None)
    return -total if m.group("sign") == "-" else total


def format_iso_duration(ms: int) -> str:
    """Render signed milliseconds as a duration (``-PT1H30M``, ``PT0S``)."""
    sign = "-" if ms < 0 else ""
    seconds = abs(int(ms)) // SECOND_MS
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    parts = ""
    if hours:
        parts += f"{hours}H"
    if minutes:
        parts += f"{minutes}M"
    if secs or not parts:
        parts += f"{secs}S"
    return f"{sign}PT{parts}"


# ---------- Instants ----------


def parse_iso(text: str, tz: Zone) -> Optional[int]:
    """
    Parse ISO-8601 date-time text into epoch milliseconds.

    Text without an offset is read as wall-clock time in ``tz``. A trailing
    ``Z`` means UTC. Returns None when the text is not a timestamp.
    """
    s = text.strip()
    if not s:
        return None
    if s[-1] in "zZ":
        s = s[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    try:
        return int(round(parsed.timestamp() * 1000))
    except (OverflowError, OSError, ValueError):
        return None


def parse_instant(value: Union[str, int, float, None], tz: Zone) -> Optional[int]:
    """
    Read an absolute instant given as ISO text, epoch-ms number or epoch-ms
    digits. Booleans and other types are rejected with None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        if _EPOCH_RE.match(value.strip()):
            return int(value.strip())
        return parse_iso(value, tz)
    return None


def to_epoch_ms(number: Union[int, float], seconds_threshold: int = 10**12) -> int:
    """Scale an epoch number to milliseconds: below the threshold it is seconds."""
    if abs(number) < seconds_threshold:
        return int(number * SECOND_MS)
    return int(number)


def from_epoch_ms(ms: int, tz: Zone) -> dt.datetime:
    """
    Epoch milliseconds as a datetime in ``tz`` (naive local time for None),
    truncated to the second.

    Raises:
        ValueError: If the instant falls outside the supported calendar range.
    """
    try:
        return dt.datetime.fromtimestamp(ms // 1000, tz=tz)
    except (OverflowError, OSError, ValueError) as ex:
        raise ValueError(f"Instant out of range: {ms}") from ex


def format_local_iso(ms: int, tz: Zone) -> str:
    """
    Render epoch milliseconds as wall-clock text in ``tz`` with no offset or
    ``Z`` suffix, e.g. ``2023-11-14T22:13:20`` (``.250`` appended when the
    instant has a millisecond part).

    Raises:
        ValueError: If the instant falls outside the supported calendar range.
    """
    moment = from_epoch_ms(ms, tz)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if ms % 1000:
        text += ".%03d" % (ms % 1000)
    return text
