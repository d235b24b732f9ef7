"""Shared fixtures: a frozen clock and UTC so time arithmetic is exact."""

import datetime as dt
import os
import time

import pytest

from timekeeper.config import KeeperConfig
from timekeeper.engine import TimeKeeper
from timekeeper.schemes import SchemeContext

NOW_MS = 1_700_010_000_000  # 2023-11-15T01:00:00Z


@pytest.fixture
def now_ms():
    return NOW_MS


@pytest.fixture
def ctx():
    """Scheme context pinned to NOW_MS in UTC."""
    return SchemeContext(now_ms=NOW_MS, tz=dt.timezone.utc)


@pytest.fixture
def keeper():
    """Engine configured for UTC with an in-memory store."""
    return TimeKeeper(KeeperConfig(timezone="UTC"))


@pytest.fixture
def eastern_time():
    """System local time set to US Eastern, EST in winter and EDT in summer."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    saved = os.environ.get("TZ")
    os.environ["TZ"] = "EST5EDT,M3.2.0,M11.1.0"
    time.tzset()
    yield
    if saved is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = saved
    time.tzset()
