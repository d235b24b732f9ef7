"""
Scheme base class and shared helpers.

Each scheme knows how to find its time-bearing substring in an address,
peel that scheme's escaping layers, and turn the result into a TimeRange;
and, inversely, how to write a TimeRange back into the same substring.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from timekeeper.address import Address
from timekeeper.codec import MISSING, try_parse
from timekeeper.config import KeeperConfig
from timekeeper.errors import MalformedError, NoMatchError, UnsupportedValueError
from timekeeper.model import SchemeTag, TimeRange
from timekeeper.timeutil import Zone, format_local_iso, parse_instant

logger = logging.getLogger("timekeeper.schemes")


@dataclass(frozen=True)
class SchemeContext:
    """The clock reading and zone a single parse/inject call works against."""

    now_ms: int
    tz: Zone = dt.timezone.utc
    seconds_threshold: int = 10**12

    @staticmethod
    def current(config: Optional[KeeperConfig] = None, now_ms: Optional[int] = None) -> "SchemeContext":
        """Read the wall clock once and resolve the configured zone."""
        config = config or KeeperConfig()
        return SchemeContext(
            now_ms=int(time.time() * 1000) if now_ms is None else now_ms,
            tz=config.tzinfo(),
            seconds_threshold=config.epoch_seconds_threshold,
        )


class Scheme(ABC):
    """Base class for all scheme parser/injector pairs."""

    @property
    @abstractmethod
    def tag(self) -> SchemeTag:
        """The classifier tag this scheme handles."""
        ...

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable source name stamped on captured ranges."""
        ...

    @abstractmethod
    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        """
        Read the page's time window.

        Raises:
            NoMatchError, MalformedError, UnsupportedValueError
        """
        ...

    @abstractmethod
    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        """
        Return a new address text carrying ``time_range`` in absolute form.

        Raises:
            NoMatchError, MalformedError
        """
        ...

    # ---------- helpers for subclasses ----------

    def _no_match(self, detail: str) -> NoMatchError:
        logger.debug("%s: no match (%s)", self.tag.value, detail)
        return NoMatchError(self.tag, detail)

    def _malformed(self, detail: str) -> MalformedError:
        logger.debug("%s: malformed (%s)", self.tag.value, detail)
        return MalformedError(self.tag, detail)

    def _unsupported(self, detail: str) -> UnsupportedValueError:
        logger.debug("%s: unsupported value (%s)", self.tag.value, detail)
        return UnsupportedValueError(self.tag, detail)

    def _decode_object(self, text: str) -> Dict[str, Any]:
        """Decode JSURL text that must hold an object."""
        value = try_parse(text, MISSING)
        if value is MISSING:
            raise self._malformed(f"undecodable value {text[:40]!r}")
        if not isinstance(value, dict):
            raise self._unsupported(f"expected an object, got {type(value).__name__}")
        return value

    def _instant(self, value: Any, ctx: SchemeContext, field: str) -> int:
        """Read an ISO-or-epoch-ms endpoint, failing as an unsupported value."""
        ms = parse_instant(value, ctx.tz)
        if ms is None:
            raise self._unsupported(f"{field} is not a timestamp: {value!r}")
        return ms

    def _wall_clock(self, ms: int, ctx: SchemeContext) -> str:
        """Local ISO text for an instant; the calendar's limits are a malformed range."""
        try:
            return format_local_iso(ms, ctx.tz)
        except ValueError as ex:
            raise self._malformed(str(ex)) from ex

    def _range(self, start: int, end: int, **hints: Any) -> TimeRange:
        return TimeRange(start=start, end=end, source=self.label, scheme=self.tag, **hints)


def present(obj: Dict[str, Any], key: str) -> bool:
    """True when ``key`` holds a value; zero, False and "" all count as present."""
    return obj.get(key, MISSING) is not MISSING and obj.get(key) is not None


def as_number(value: Any) -> Optional[float]:
    """Numeric view of a field that may be a number or numeric text."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value) if any(c in value for c in ".eE") else int(value)
        except ValueError:
            return None
    return None
