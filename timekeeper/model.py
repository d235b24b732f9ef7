"""
Time Keeper Model

The canonical time range is the single currency of the engine: every
scheme parser produces one and every scheme injector consumes one.

Required properties:
- Scheme-agnostic: start/end are epoch milliseconds, whatever the page used
- Advisory hints: encoding and echo fields help an injector pick a faithful
  style but never override start/end
- Unordered: start <= end is the caller's business, not the model's
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


# ---------- Enums (closed-world) ----------


class SchemeTag(str, Enum):
    """Which address-encoding convention a page uses for its time window."""

    METRICS_GRAPH = "metrics-graph"
    LOGS_INSIGHTS_A = "logs-insights-a"
    LOGS_INSIGHTS_B = "logs-insights-b"
    LOG_EVENTS = "log-events"
    GENERIC_HASH_STATE = "generic-hash-state"
    PLAIN_QUERY_DURATION = "plain-query-duration"
    UNSUPPORTED = "unsupported"
    NOT_APPLICABLE = "not-applicable"

    @property
    def supported(self) -> bool:
        """Whether a parser/injector pair exists for this tag."""
        return self not in (SchemeTag.UNSUPPORTED, SchemeTag.NOT_APPLICABLE)


class Encoding(str, Enum):
    """
    RELATIVE: an offset from "now" (e.g. last 3 hours)
    ABSOLUTE: two fixed instants
    """

    RELATIVE = "RELATIVE"
    ABSOLUTE = "ABSOLUTE"


class FailureReason(str, Enum):
    """
    Stable reason codes for a failed parse or inject.

    NO_MATCH: the scheme's substring is not in the address
    MALFORMED: the substring is there but does not follow the grammar
    UNSUPPORTED_VALUE: decoded cleanly, but not a known time shape
    """

    NO_MATCH = "no-match"
    MALFORMED = "malformed"
    UNSUPPORTED_VALUE = "unsupported-value"


# ---------- Core structs ----------


@dataclass(frozen=True)
class TimeRange:
    """
    A time window independent of the page it came from.

    ``duration`` and ``unit`` echo what the page originally said (e.g.
    ``-PT3H`` or ``seconds``) so an injector can stay in the page's idiom.
    """

    start: int
    end: int
    source: str = "Manual"
    scheme: Optional[SchemeTag] = None
    encoding: Encoding = Encoding.ABSOLUTE
    captured_at: Optional[int] = None
    duration: Optional[str] = None
    unit: Optional[str] = None

    @property
    def span_ms(self) -> int:
        """Length of the window in milliseconds (may be negative)."""
        return self.end - self.start

    @property
    def is_relative(self) -> bool:
        return self.encoding == Encoding.RELATIVE

    def stamped(self, captured_at: int) -> "TimeRange":
        """Return a copy carrying the capture time."""
        return replace(self, captured_at=captured_at)

    @staticmethod
    def absolute(start: int, end: int, source: str = "Manual") -> "TimeRange":
        """Create an absolute range between two epoch-millisecond instants."""
        return TimeRange(start=start, end=end, source=source)


@dataclass(frozen=True)
class Failure:
    """A tagged, recoverable failure returned across the engine boundary."""

    reason: FailureReason
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return f"{self.reason.value}: {self.message}"
        return self.reason.value


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of reading a time range out of an address."""

    scheme: SchemeTag
    time_range: Optional[TimeRange] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.time_range is not None


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of writing a time range into an address."""

    scheme: SchemeTag
    address: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.address is not None
