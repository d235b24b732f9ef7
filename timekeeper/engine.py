"""
Time Keeper Engine

The boundary between the scheme machinery and whoever owns the page:

    address -> classify -> registry[tag].parse  -> CaptureResult
    address + range -> classify -> registry[tag].inject -> ApplyResult

Scheme errors never cross this boundary; they come back as tagged
failures the caller can show or ignore.
"""

from __future__ import annotations

import logging
from typing import Optional

from timekeeper.address import Address
from timekeeper.classify import classify, classify_rule
from timekeeper.config import KeeperConfig
from timekeeper.errors import SchemeError
from timekeeper.history import KeyValueStore, TimeRangeHistory
from timekeeper.model import ApplyResult, CaptureResult, Failure, FailureReason, SchemeTag, TimeRange
from timekeeper.schemes import SchemeContext, SchemeRegistry, default_registry

logger = logging.getLogger("timekeeper.engine")


class TimeKeeper:
    """
    Capture time windows from console addresses and apply them to others.

    Usage:
        keeper = TimeKeeper(KeeperConfig(timezone="UTC"))
        result = keeper.capture(url)
        if result.ok:
            applied = keeper.apply(other_url, result.time_range)
    """

    def __init__(
        self,
        config: Optional[KeeperConfig] = None,
        store: Optional[KeyValueStore] = None,
        registry: Optional[SchemeRegistry] = None,
    ) -> None:
        self.config = config or KeeperConfig()
        self.registry = registry or default_registry()
        self.history = TimeRangeHistory(store, history_size=self.config.history_size)

    def context(self, now_ms: Optional[int] = None) -> SchemeContext:
        return SchemeContext.current(self.config, now_ms)

    def detect(self, url: str) -> SchemeTag:
        """Classify an address."""
        return classify(url, self.config)

    def label(self, url: str) -> str:
        """Display name of the product behind an address."""
        return classify_rule(url, self.config).label

    def capture(self, url: str, now_ms: Optional[int] = None) -> CaptureResult:
        """Read the time window shown by the page at ``url``."""
        address = Address(url)
        tag = classify(address, self.config)
        ctx = self.context(now_ms)
        logger.debug("capture: %s classified as %s", url, tag.value)

        try:
            time_range = self.registry.parse(tag, address, ctx)
        except SchemeError as ex:
            logger.debug("capture failed: %s", ex)
            return CaptureResult(scheme=tag, failure=ex.to_failure())

        return CaptureResult(scheme=tag, time_range=time_range.stamped(ctx.now_ms))

    def apply(self, url: str, time_range: TimeRange, now_ms: Optional[int] = None) -> ApplyResult:
        """Return the address of ``url`` rewritten to show ``time_range``."""
        address = Address(url)
        tag = classify(address, self.config)
        ctx = self.context(now_ms)
        logger.debug("apply: %s classified as %s", url, tag.value)

        try:
            new_url = self.registry.inject(tag, address, time_range, ctx)
        except SchemeError as ex:
            logger.debug("apply failed: %s", ex)
            return ApplyResult(scheme=tag, failure=ex.to_failure())

        return ApplyResult(scheme=tag, address=new_url)

    def capture_and_save(self, url: str, now_ms: Optional[int] = None) -> CaptureResult:
        """Capture and, on success, make the range current in the history."""
        result = self.capture(url, now_ms)
        if result.ok:
            self.history.save(result.time_range)
        return result

    def apply_current(self, url: str, now_ms: Optional[int] = None) -> ApplyResult:
        """Apply the stored current range to ``url``."""
        current = self.history.current()
        if current is None:
            return ApplyResult(
                scheme=self.detect(url),
                failure=Failure(FailureReason.NO_MATCH, "no time range stored"),
            )
        return self.apply(url, current, now_ms)
