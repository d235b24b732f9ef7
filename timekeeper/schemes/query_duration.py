"""
Plain query duration scheme.

A single ``timeRange`` parameter, in the query string or the fragment::

    ?timeRange=PT1H
    #traces?timeRange=2024-01-01T00:00:00~2024-01-01T06:00:00
"""

from __future__ import annotations

import re
from typing import Tuple
from urllib.parse import unquote

from timekeeper.address import Address
from timekeeper.model import Encoding, SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext
from timekeeper.timeutil import parse_duration

_PARAM_RE = re.compile(r"(?<![\w.-])timeRange=([^&#;]*)")
SEPARATOR = "~"


class PlainQueryDurationScheme(Scheme):
    """``timeRange=`` holding a duration or two endpoints."""

    tag = SchemeTag.PLAIN_QUERY_DURATION
    label = "X-Ray"

    def _locate(self, address: Address) -> "re.Match[str]":
        for region in ("query", "fragment"):
            match = address.search(_PARAM_RE, region)
            if match is not None:
                return match
        raise self._no_match("timeRange parameter not found")

    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        value = unquote(self._locate(address).group(1))
        if not value:
            raise self._malformed("empty timeRange")

        if SEPARATOR in value:
            start, end = self._endpoints(value)
            return self._range(
                self._instant(start, ctx, "start"),
                self._instant(end, ctx, "end"),
            )

        offset = parse_duration(value)
        if offset is None:
            raise self._malformed(f"bad duration {value!r}")
        return self._range(
            ctx.now_ms - abs(offset),
            ctx.now_ms,
            encoding=Encoding.RELATIVE,
            duration=value,
        )

    def _endpoints(self, value: str) -> Tuple[str, str]:
        parts = value.split(SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise self._malformed(f"expected START{SEPARATOR}END, got {value!r}")
        return parts[0], parts[1]

    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        match = self._locate(address)
        new_value = (
            self._wall_clock(time_range.start, ctx)
            + SEPARATOR
            + self._wall_clock(time_range.end, ctx)
        )
        return address.splice(match.start(1), match.end(1), new_value)
