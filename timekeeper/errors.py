"""
Time Keeper exception hierarchy.

Scheme parsers and injectors raise these; the engine turns them into
tagged results so nothing escapes its boundary.
"""

from __future__ import annotations

from typing import List, Optional

from timekeeper.model import Failure, FailureReason, SchemeTag


class TimeKeeperError(Exception):
    """Base for all timekeeper errors."""


class SchemeError(TimeKeeperError):
    """A scheme could not read or write its time-bearing substring."""

    reason: FailureReason = FailureReason.MALFORMED

    def __init__(self, scheme: Optional[SchemeTag], detail: str = ""):
        self.scheme = scheme
        self.detail = detail
        label = scheme.value if scheme is not None else "unknown"
        super().__init__(f"{label}: {self.reason.value}" + (f" ({detail})" if detail else ""))

    def to_failure(self) -> Failure:
        return Failure(reason=self.reason, message=self.detail)


class NoMatchError(SchemeError):
    """The scheme's substring is absent from the address."""

    reason = FailureReason.NO_MATCH


class MalformedError(SchemeError):
    """The substring was found but its contents break the scheme's grammar."""

    reason = FailureReason.MALFORMED


class UnsupportedValueError(SchemeError):
    """The value decoded but does not map onto a known time representation."""

    reason = FailureReason.UNSUPPORTED_VALUE


class TimeRangeValidationError(TimeKeeperError, ValueError):
    """Raised when a finalized time range is not fit for display or storage."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Time range failed validation:\n- " + "\n- ".join(errors))


class HistoryIndexError(TimeKeeperError, IndexError):
    """Raised when restoring a history entry that does not exist."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Invalid history index {index} (history holds {size})")
