"""
Time Keeper: copy time windows between console pages.

Console pages keep their active time window inside the address text, each
section in its own incompatible encoding. This package reads a time range
out of an address and writes a (possibly different) one back into another
address, leaving every unrelated character alone.
"""

__version__ = "0.1.0"

from timekeeper.address import Address
from timekeeper.classify import classify, classify_rule
from timekeeper.config import KeeperConfig
from timekeeper.engine import TimeKeeper
from timekeeper.model import (
    ApplyResult,
    CaptureResult,
    Encoding,
    Failure,
    FailureReason,
    SchemeTag,
    TimeRange,
)

__all__ = [
    "Address",
    "ApplyResult",
    "CaptureResult",
    "Encoding",
    "Failure",
    "FailureReason",
    "KeeperConfig",
    "SchemeTag",
    "TimeKeeper",
    "TimeRange",
    "classify",
    "classify_rule",
]
