"""
Time Range History

Remembers the current time range and a bounded list of previous ones on
top of any key-value store. The store only ever sees plain dicts and
lists, never TimeRange objects.

Storage schema:
    currentTimeRange: { start, end, source, capturedAt, ... }
    timeRangeHistory: [ ...most recent first, at most history_size ]
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from timekeeper.errors import HistoryIndexError
from timekeeper.model import TimeRange
from timekeeper.serialize import from_dict, to_dict

logger = logging.getLogger("timekeeper.history")

CURRENT_KEY = "currentTimeRange"
HISTORY_KEY = "timeRangeHistory"
DEFAULT_HISTORY_SIZE = 5


class KeyValueStore(Protocol):
    """Protocol for persistence backends."""

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value under a key."""
        ...

    def remove(self, key: str) -> None:
        """Forget a key; missing keys are ignored."""
        ...


class InMemoryKeyValueStore:
    """In-memory store for testing and single-process use."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class TimeRangeHistory:
    """
    Current range plus most-recent-first history.

    Saving a range pushes the previous current range onto the front of
    the history; the oldest entries fall off once ``history_size`` is
    exceeded.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._store: KeyValueStore = store or InMemoryKeyValueStore()
        self._history_size = history_size

    @property
    def history_size(self) -> int:
        return self._history_size

    def _raw_history(self) -> List[Dict[str, Any]]:
        return list(self._store.get(HISTORY_KEY) or [])

    def _push(self, history: List[Dict[str, Any]], entry: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if entry is not None:
            history.insert(0, entry)
        return history[: self._history_size]

    def save(self, time_range: TimeRange) -> None:
        """Make ``time_range`` current, pushing the old current into history."""
        history = self._push(self._raw_history(), self._store.get(CURRENT_KEY))
        self._store.set(CURRENT_KEY, to_dict(time_range))
        self._store.set(HISTORY_KEY, history)
        logger.debug("saved %s range, history holds %d", time_range.source, len(history))

    def current(self) -> Optional[TimeRange]:
        data = self._store.get(CURRENT_KEY)
        return from_dict(data) if data else None

    def history(self) -> List[TimeRange]:
        """Previous ranges, most recent first."""
        return [from_dict(item) for item in self._raw_history()]

    def restore(self, index: int) -> TimeRange:
        """
        Make history entry ``index`` current again.

        The entry leaves the history and the old current range takes its
        place at the front.

        Raises:
            HistoryIndexError: If ``index`` is out of range.
        """
        history = self._raw_history()
        if index < 0 or index >= len(history):
            raise HistoryIndexError(index, len(history))

        restored = history.pop(index)
        history = self._push(history, self._store.get(CURRENT_KEY))
        self._store.set(CURRENT_KEY, restored)
        self._store.set(HISTORY_KEY, history)
        return from_dict(restored)

    def clear(self) -> None:
        """Forget the current range and the whole history."""
        self._store.remove(CURRENT_KEY)
        self._store.remove(HISTORY_KEY)
