"""
Metrics graph scheme.

The graph definition lives in the fragment as a JSURL object::

    #metricsV2:graph=~(view~'timeSeries~region~'us-east-1~start~'-PT3H~end~'P0D)

``start``/``end`` are either durations relative to now (``-PT3H`` /
``P0D``) or absolute instants (ISO text or epoch milliseconds). Without
them, ``period`` may hold a duration.
"""

from __future__ import annotations

import re

from timekeeper.address import Address
from timekeeper.codec import stringify
from timekeeper.model import Encoding, SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext, present
from timekeeper.timeutil import parse_duration

_GRAPH_RE = re.compile(r"graph=([^&;]*)")


class MetricsGraphScheme(Scheme):
    """``graph=`` JSURL object in the fragment."""

    tag = SchemeTag.METRICS_GRAPH
    label = "CloudWatch Metrics"

    def _locate(self, address: Address) -> "re.Match[str]":
        match = address.search(_GRAPH_RE)
        if match is None:
            raise self._no_match("graph= parameter not found")
        return match

    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        graph = self._decode_object(self._locate(address).group(1))

        if present(graph, "start") and present(graph, "end"):
            start, end = graph["start"], graph["end"]
            if isinstance(start, str) and start.startswith("-P"):
                return self._relative(start, end, ctx)
            return self._range(
                self._instant(start, ctx, "start"),
                self._instant(end, ctx, "end"),
            )

        if present(graph, "period"):
            period = graph["period"]
            if not isinstance(period, str):
                raise self._unsupported(f"period is not a duration: {period!r}")
            offset = parse_duration(period)
            if offset is None:
                raise self._malformed(f"bad duration {period!r}")
            return self._range(
                ctx.now_ms - abs(offset),
                ctx.now_ms,
                encoding=Encoding.RELATIVE,
                duration=period,
            )

        raise self._unsupported("graph has neither start/end nor period")

    def _relative(self, start: str, end: object, ctx: SchemeContext) -> TimeRange:
        start_offset = parse_duration(start)
        if start_offset is None:
            raise self._malformed(f"bad duration {start!r}")
        end_ms = ctx.now_ms
        if isinstance(end, str) and end.lstrip("+-")[:1].upper() == "P":
            end_offset = parse_duration(end)
            if end_offset is None:
                raise self._malformed(f"bad duration {end!r}")
            end_ms = ctx.now_ms + end_offset
        return self._range(
            ctx.now_ms + start_offset,
            end_ms,
            encoding=Encoding.RELATIVE,
            duration=start,
        )

    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        match = self._locate(address)
        graph = self._decode_object(match.group(1))
        graph["start"] = self._wall_clock(time_range.start, ctx)
        graph["end"] = self._wall_clock(time_range.end, ctx)
        return address.splice(match.start(1), match.end(1), stringify(graph))
