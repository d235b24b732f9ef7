"""
Logs Insights schemes.

The query definition is a JSURL object stored under ``queryDetail``. Two
spellings are seen in the wild:

Format A - literal delimiters, value escaped twice over::

    #logsV2:logs-insights?queryDetail=<JSURL -> percent-encode -> '%' to '$'>

Format B - delimiters short-escaped, value is raw JSURL::

    #logsV2:logs-insights$3FqueryDetail$3D~(end~0~start~-3600~timeType~'RELATIVE~unit~'seconds)

Once decoded both carry the same fields: ``timeType`` (RELATIVE/ABSOLUTE),
``start``/``end`` (signed offsets from now in ``unit``, or absolute epoch
seconds/milliseconds or ISO text) and, on older pages, ``unit``/``value``.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote

from timekeeper.address import Address
from timekeeper.codec import stringify
from timekeeper.model import Encoding, SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext, as_number, present
from timekeeper.timeutil import SECOND_MS, parse_iso, to_epoch_ms

_FORMAT_A_RE = re.compile(r"queryDetail=([^&;]*)")
_FORMAT_B_RE = re.compile(r"queryDetail(?i:\$3D)((?:(?!\$26)[^&;])*)")

# encodeURIComponent leaves these alone on top of letters, digits and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"

_UNIT_MS = {
    "s": 1_000, "sec": 1_000, "second": 1_000, "seconds": 1_000,
    "m": 60_000, "min": 60_000, "minute": 60_000, "minutes": 60_000,
    "h": 3_600_000, "hour": 3_600_000, "hours": 3_600_000,
    "d": 86_400_000, "day": 86_400_000, "days": 86_400_000,
    "w": 604_800_000, "week": 604_800_000, "weeks": 604_800_000,
}


def unit_ms(unit: Optional[str]) -> Optional[int]:
    """Milliseconds per ``unit``; seconds when no unit is given."""
    if unit is None:
        return SECOND_MS
    if not isinstance(unit, str):
        return None
    return _UNIT_MS.get(unit.strip().lower())


class _InsightsScheme(Scheme):
    """Shared time semantics of both Logs Insights spellings."""

    label = "CloudWatch Logs Insights"
    pattern: "re.Pattern[str]"

    def _unwrap(self, raw: str) -> str:
        """Reverse the escaping applied on top of the JSURL text."""
        return raw

    def _wrap(self, jsurl: str) -> str:
        return jsurl

    def _locate(self, address: Address) -> "re.Match[str]":
        match = address.search(self.pattern)
        if match is None:
            raise self._no_match("queryDetail parameter not found")
        return match

    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        detail = self._decode_object(self._unwrap(self._locate(address).group(1)))
        return self._interpret(detail, ctx)

    def _interpret(self, detail: Dict[str, Any], ctx: SchemeContext) -> TimeRange:
        unit = detail.get("unit")

        if present(detail, "start") and present(detail, "end"):
            if self._is_relative(detail):
                return self._relative(detail["start"], detail["end"], unit, ctx)
            return self._absolute(detail["start"], detail["end"], ctx)

        if present(detail, "unit") and present(detail, "value"):
            scale = unit_ms(unit)
            amount = as_number(detail["value"])
            if scale is None or amount is None:
                raise self._unsupported(f"cannot read value {detail['value']!r} {unit!r}")
            return self._range(
                ctx.now_ms - int(abs(amount) * scale),
                ctx.now_ms,
                encoding=Encoding.RELATIVE,
                unit=unit,
            )

        raise self._unsupported("queryDetail has neither start/end nor unit/value")

    def _is_relative(self, detail: Dict[str, Any]) -> bool:
        # An explicit timeType wins; the sign of start is only a fallback.
        time_type = detail.get("timeType")
        if isinstance(time_type, str) and time_type.upper() in ("RELATIVE", "ABSOLUTE"):
            return time_type.upper() == "RELATIVE"
        start = detail["start"]
        return isinstance(start, (int, float)) and not isinstance(start, bool) and start < 0

    def _relative(self, start: Any, end: Any, unit: Any, ctx: SchemeContext) -> TimeRange:
        scale = unit_ms(unit)
        if scale is None:
            raise self._unsupported(f"unknown unit {unit!r}")
        start_n = as_number(start)
        end_n = as_number(end)
        if start_n is None or end_n is None:
            raise self._malformed(f"relative offsets must be numbers: {start!r}, {end!r}")
        return self._range(
            ctx.now_ms + int(start_n * scale),
            ctx.now_ms + int(end_n * scale),
            encoding=Encoding.RELATIVE,
            unit=unit if isinstance(unit, str) else "seconds",
        )

    def _absolute(self, start: Any, end: Any, ctx: SchemeContext) -> TimeRange:
        return self._range(
            self._absolute_endpoint(start, ctx, "start"),
            self._absolute_endpoint(end, ctx, "end"),
            unit=_numeric_unit(start, ctx),
        )

    def _absolute_endpoint(self, value: Any, ctx: SchemeContext, field: str) -> int:
        number = as_number(value)
        if number is not None:
            return to_epoch_ms(number, ctx.seconds_threshold)
        if isinstance(value, str):
            ms = parse_iso(value, ctx.tz)
            if ms is not None:
                return ms
        raise self._unsupported(f"{field} is not a timestamp: {value!r}")

    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        match = self._locate(address)
        detail = self._decode_object(self._unwrap(match.group(1)))

        # Relative offsets and missing endpoints are small numbers: seconds.
        style = _numeric_unit(detail.get("start"), ctx)
        if style == "iso":
            detail["start"] = self._wall_clock(time_range.start, ctx)
            detail["end"] = self._wall_clock(time_range.end, ctx)
        elif style == "milliseconds":
            detail["start"] = int(time_range.start)
            detail["end"] = int(time_range.end)
        else:
            detail["start"] = time_range.start // SECOND_MS
            detail["end"] = time_range.end // SECOND_MS
        detail["timeType"] = "ABSOLUTE"

        return address.splice(match.start(1), match.end(1), self._wrap(stringify(detail)))


def _numeric_unit(value: Any, ctx: SchemeContext) -> str:
    """How an absolute endpoint was written: "seconds", "milliseconds" or "iso"."""
    number = as_number(value)
    if number is None:
        return "iso" if isinstance(value, str) else "seconds"
    return "seconds" if abs(number) < ctx.seconds_threshold else "milliseconds"


class LogsInsightsFormatAScheme(_InsightsScheme):
    """``queryDetail=`` with a ``$``-for-``%`` percent-encoded JSURL value."""

    tag = SchemeTag.LOGS_INSIGHTS_A
    pattern = _FORMAT_A_RE

    def _unwrap(self, raw: str) -> str:
        try:
            return unquote(raw.replace("$", "%"), errors="strict")
        except UnicodeDecodeError as ex:
            raise self._malformed(f"bad percent-encoding: {ex}") from ex

    def _wrap(self, jsurl: str) -> str:
        return quote(jsurl, safe=_URI_COMPONENT_SAFE).replace("%", "$")


class LogsInsightsFormatBScheme(_InsightsScheme):
    """``queryDetail$3D`` followed by raw JSURL."""

    tag = SchemeTag.LOGS_INSIGHTS_B
    pattern = _FORMAT_B_RE
