"""
Generic hash-state scheme.

Many console sections keep their view state as a JSURL object after a
``?`` somewhere in the fragment, often without the closing paren::

    #home:?~(timeRange~1814400000
    #dashboards/dashboard/ops?~(timeRange~(start~'2024-01-01T00*3a00*3a00Z~end~'...))

``timeRange`` is a bare number (milliseconds before now), a
``[startMs, endMs]`` pair, or a ``start``/``end`` object.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from timekeeper.address import Address
from timekeeper.codec import JsurlDecodeError, parse_prefix, stringify
from timekeeper.model import Encoding, SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext, present
from timekeeper.timeutil import format_iso_duration

MARKER = "?~("


class GenericHashStateScheme(Scheme):
    """JSURL state object following the first ``?~(`` in the fragment."""

    tag = SchemeTag.GENERIC_HASH_STATE
    label = "CloudWatch"

    def _state(self, address: Address) -> Tuple[Dict[str, Any], int, int]:
        """Decode the state object; returns it with the span it occupies."""
        frag_start, frag_end = address.fragment_span
        idx = address.text.find(MARKER, frag_start, frag_end)
        if idx < 0:
            raise self._no_match(f"{MARKER} not found in fragment")
        begin = idx + 1
        try:
            state, end = parse_prefix(address.text[:frag_end], begin)
        except JsurlDecodeError as ex:
            raise self._malformed(str(ex)) from ex
        if not isinstance(state, dict):
            raise self._unsupported(f"state is not an object: {type(state).__name__}")
        return state, begin, end

    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        state, _, _ = self._state(address)
        if not present(state, "timeRange"):
            raise self._unsupported("state has no timeRange")
        tr = state["timeRange"]

        if isinstance(tr, (int, float)) and not isinstance(tr, bool):
            return self._range(
                ctx.now_ms - int(tr),
                ctx.now_ms,
                encoding=Encoding.RELATIVE,
                duration=format_iso_duration(-int(tr)),
                unit="milliseconds",
            )
        if isinstance(tr, list) and len(tr) == 2:
            return self._range(
                self._instant(tr[0], ctx, "timeRange[0]"),
                self._instant(tr[1], ctx, "timeRange[1]"),
            )
        if isinstance(tr, dict) and present(tr, "start") and present(tr, "end"):
            return self._range(
                self._instant(tr["start"], ctx, "timeRange.start"),
                self._instant(tr["end"], ctx, "timeRange.end"),
            )
        raise self._unsupported(f"unrecognized timeRange {tr!r}")

    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        state, begin, end = self._state(address)
        if isinstance(state.get("timeRange"), list):
            state["timeRange"] = [int(time_range.start), int(time_range.end)]
        else:
            state["timeRange"] = {
                "start": self._wall_clock(time_range.start, ctx),
                "end": self._wall_clock(time_range.end, ctx),
            }
        return address.splice(begin, end, stringify(state))
