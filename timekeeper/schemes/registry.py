"""
Scheme Registry

One parser/injector pair per scheme tag. Adding a newly observed address
shape means registering one more Scheme; nothing that already works has
to change.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from timekeeper.address import Address
from timekeeper.errors import NoMatchError
from timekeeper.model import SchemeTag, TimeRange
from timekeeper.schemes.base import Scheme, SchemeContext
from timekeeper.schemes.hash_state import GenericHashStateScheme
from timekeeper.schemes.insights import LogsInsightsFormatAScheme, LogsInsightsFormatBScheme
from timekeeper.schemes.log_events import LogEventsScheme
from timekeeper.schemes.metrics import MetricsGraphScheme
from timekeeper.schemes.query_duration import PlainQueryDurationScheme


class SchemeRegistry:
    """Table of schemes keyed by tag."""

    def __init__(self, schemes: Optional[Iterable[Scheme]] = None) -> None:
        self._schemes: Dict[SchemeTag, Scheme] = {}
        for scheme in schemes or ():
            self.register(scheme)

    def register(self, scheme: Scheme) -> None:
        """Register a scheme, replacing any previous one for the same tag."""
        if not scheme.tag.supported:
            raise ValueError(f"Cannot register a scheme for {scheme.tag.value}")
        self._schemes[scheme.tag] = scheme

    def resolve(self, tag: SchemeTag) -> Scheme:
        """
        Look up the scheme for a tag.

        Raises:
            NoMatchError: If no scheme handles the tag (including the
                Unsupported and NotApplicable tags).
        """
        scheme = self._schemes.get(tag)
        if scheme is None:
            raise NoMatchError(tag, "no scheme registered for this address")
        return scheme

    def exists(self, tag: SchemeTag) -> bool:
        return tag in self._schemes

    def tags(self) -> List[SchemeTag]:
        return list(self._schemes)

    def parse(self, tag: SchemeTag, address: Address, ctx: SchemeContext) -> TimeRange:
        return self.resolve(tag).parse(address, ctx)

    def inject(self, tag: SchemeTag, address: Address, time_range: TimeRange, ctx: SchemeContext) -> str:
        return self.resolve(tag).inject(address, time_range, ctx)


def default_registry() -> SchemeRegistry:
    """A registry holding every built-in scheme."""
    return SchemeRegistry(
        [
            MetricsGraphScheme(),
            LogsInsightsFormatAScheme(),
            LogsInsightsFormatBScheme(),
            LogEventsScheme(),
            GenericHashStateScheme(),
            PlainQueryDurationScheme(),
        ]
    )
