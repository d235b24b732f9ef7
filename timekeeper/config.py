"""Time Keeper configuration.

KeeperConfig is a frozen dataclass: immutable after creation, every field
defaulted. Override what you need::

    config = KeeperConfig(timezone="UTC", history_size=10)
"""

from __future__ import annotations

from dataclasses import dataclass

from timekeeper.timeutil import Zone, normalize_tz_name, resolve_tz


@dataclass(frozen=True)
class KeeperConfig:
    """Engine configuration. Immutable after creation."""

    # Zone used for wall-clock text written into addresses and for reading
    # timestamps that carry no offset: "local", "UTC", IANA name or "+02:00"
    timezone: str = "local"

    # History
    history_size: int = 5

    # Numbers below this are epoch seconds, at or above it epoch milliseconds
    epoch_seconds_threshold: int = 10**12

    # Host suffix that marks an address as belonging to the console
    console_host_suffix: str = "console.aws.amazon.com"

    def __post_init__(self) -> None:
        if self.history_size < 0:
            raise ValueError("history_size must be >= 0")
        object.__setattr__(self, "timezone", normalize_tz_name(self.timezone))
        resolve_tz(self.timezone)

    def tzinfo(self) -> Zone:
        """Resolve the configured zone (None for system local time); raises
        ValueError if it is unknown."""
        return resolve_tz(self.timezone)
