"""
Log events scheme.

The log stream viewer short-escapes its own query delimiters inside the
fragment (``$3F`` for ``?``, ``$3D`` for ``=``, ``$26`` for ``&``) and
stores plain signed integers::

    #logsV2:log-groups/log-group/app/log-events/stream$3Fstart$3D-3600000
    #logsV2:log-groups/log-group/app/log-events/stream$3Fstart$3D1700000000000$26end$3D1700003600000

A negative value is "this many milliseconds before now"; anything else is
an absolute epoch-millisecond instant. ``end`` is optional and means "now"
when missing.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from timekeeper.address import Address
from timekeeper.model import Encoding, SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext

_PARAM_RE = re.compile(r"(?i:\$3F|\$26)(start|end)((?i:\$3D))([^$&;#]*)")


class LogEventsScheme(Scheme):
    """Short-escaped ``start``/``end`` integers in the fragment."""

    tag = SchemeTag.LOG_EVENTS
    label = "CloudWatch Log Events"

    def _params(self, address: Address) -> Dict[str, "re.Match[str]"]:
        found: Dict[str, "re.Match[str]"] = {}
        start, end = address.fragment_span
        for match in _PARAM_RE.finditer(address.text, start, end):
            found.setdefault(match.group(1), match)
        if "start" not in found:
            raise self._no_match("start parameter not found")
        return found

    def _integer(self, match: "re.Match[str]") -> int:
        raw = match.group(3)
        try:
            return int(raw)
        except ValueError:
            raise self._malformed(f"{match.group(1)} is not an integer: {raw!r}")

    def _resolve(self, value: int, ctx: SchemeContext) -> int:
        return ctx.now_ms + value if value < 0 else value

    def parse(self, address: Address, ctx: SchemeContext) -> TimeRange:
        params = self._params(address)
        start = self._integer(params["start"])
        end: Optional[int] = self._integer(params["end"]) if "end" in params else None

        relative = start < 0
        return self._range(
            self._resolve(start, ctx),
            ctx.now_ms if end is None else self._resolve(end, ctx),
            encoding=Encoding.RELATIVE if relative else Encoding.ABSOLUTE,
            unit="milliseconds",
        )

    def inject(self, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        params = self._params(address)
        start_match = params["start"]
        end_match = params.get("end")

        text = address.text
        edits = [(start_match.start(3), start_match.end(3), str(int(time_range.start)))]
        if end_match is not None:
            edits.append((end_match.start(3), end_match.end(3), str(int(time_range.end))))
        else:
            # The page reads a missing end as "now"; pin it right after start.
            eq = start_match.group(2)
            edits.append((start_match.end(3), start_match.end(3), f"$26end{eq}{int(time_range.end)}"))

        for begin, finish, replacement in sorted(edits, reverse=True):
            text = text[:begin] + replacement + text[finish:]
        return text
