"""
Time Range Validation

The scheme parsers never reorder or reject a range: some pages store
offsets that are negative or reversed mid-computation. Once a range is
final (typed in by hand, about to be saved or shown), this is where it
gets checked.
"""

from __future__ import annotations

from typing import List

from timekeeper.errors import TimeRangeValidationError
from timekeeper.model import TimeRange


def validate_range(time_range: TimeRange) -> None:
    """
    Check that a finalized range is usable.

    Raises:
        TimeRangeValidationError: If start/end are not integers or
            start is not strictly before end.
    """
    errors: List[str] = []

    for name in ("start", "end"):
        value = getattr(time_range, name)
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{name} must be an integer epoch-millisecond value.")

    if not errors and time_range.start >= time_range.end:
        errors.append("start must be before end.")

    if errors:
        raise TimeRangeValidationError(errors)
