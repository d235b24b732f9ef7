"""Tests for the current range and bounded history."""

import pytest

from timekeeper.errors import HistoryIndexError
from timekeeper.history import (
    CURRENT_KEY,
    HISTORY_KEY,
    InMemoryKeyValueStore,
    TimeRangeHistory,
)
from timekeeper.model import TimeRange


def _range(n):
    return TimeRange.absolute(n * 1000, n * 1000 + 500, source=f"r{n}")


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def history(store):
    return TimeRangeHistory(store)


class TestSave:
    """Test saving ranges."""

    def test_empty(self, history):
        assert history.current() is None
        assert history.history() == []

    def test_first_save(self, history):
        history.save(_range(1))
        assert history.current() == _range(1)
        assert history.history() == []

    def test_previous_current_moves_to_history(self, history):
        history.save(_range(1))
        history.save(_range(2))
        history.save(_range(3))
        assert history.current() == _range(3)
        assert history.history() == [_range(2), _range(1)]

    def test_bounded(self, history):
        """The oldest entries fall off past the size limit."""
        for n in range(1, 9):
            history.save(_range(n))
        assert history.current() == _range(8)
        assert [r.source for r in history.history()] == ["r7", "r6", "r5", "r4", "r3"]

    def test_custom_size(self, store):
        history = TimeRangeHistory(store, history_size=1)
        for n in range(1, 4):
            history.save(_range(n))
        assert history.history() == [_range(2)]

    def test_store_holds_plain_data(self, history, store):
        history.save(_range(1))
        history.save(_range(2))
        assert store.get(CURRENT_KEY)["source"] == "r2"
        assert store.get(HISTORY_KEY)[0]["start"] == 1000


class TestRestore:
    """Test restoring a history entry."""

    def test_restore(self, history):
        for n in (1, 2, 3):
            history.save(_range(n))
        restored = history.restore(1)
        assert restored == _range(1)
        assert history.current() == _range(1)
        assert history.history() == [_range(3), _range(2)]

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_invalid_index(self, history, index):
        history.save(_range(1))
        history.save(_range(2))
        history.save(_range(3))
        with pytest.raises(HistoryIndexError) as exc:
            history.restore(index)
        assert exc.value.size == 2

    def test_index_error_is_index_error(self, history):
        with pytest.raises(IndexError):
            history.restore(0)


class TestClear:
    def test_clear(self, history, store):
        history.save(_range(1))
        history.save(_range(2))
        history.clear()
        assert history.current() is None
        assert history.history() == []
        assert store.get(CURRENT_KEY) is None
