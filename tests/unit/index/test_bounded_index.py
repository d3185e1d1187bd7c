# tests/unit/index/test_bounded_index.py

from unittest.mock import MagicMock

import pytest

from narrator_kit.errors import UsageError
from narrator_kit.index import BoundedIndex
from narrator_kit.observability import names


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class TestBoundedIndex:
    def test_put_and_lookup(self) -> None:
        index = BoundedIndex(max_size=10)

        index.put("j1:dragon", "p1")
        index.put("j1:dragon", "p2")

        assert index.lookup("j1:dragon") == frozenset({"p1", "p2"})
        assert len(index) == 1

    def test_lookup_missing_key_returns_empty(self) -> None:
        index = BoundedIndex(max_size=10)

        assert index.lookup("nope") == frozenset()

    def test_rejects_non_positive_max_size(self) -> None:
        with pytest.raises(UsageError):
            BoundedIndex(max_size=0)

    def test_evicts_least_recently_used_beyond_capacity(self) -> None:
        """5001 distinct keys leave 5000, without the first one."""
        index = BoundedIndex()

        for i in range(5001):
            index.put(f"j1:k{i}", "p1")

        assert index.size() == 5000
        assert "j1:k0" not in index
        assert "j1:k1" in index
        assert "j1:k5000" in index

    def test_lookup_refreshes_recency(self) -> None:
        index = BoundedIndex(max_size=3)
        index.put("a", "p")
        index.put("b", "p")
        index.put("c", "p")

        index.lookup("a")
        index.put("d", "p")

        assert "a" in index
        assert "b" not in index
        assert index.keys() == ["c", "a", "d"]

    def test_put_on_existing_key_refreshes_recency(self) -> None:
        index = BoundedIndex(max_size=2)
        index.put("a", "p1")
        index.put("b", "p1")

        index.put("a", "p2")
        index.put("c", "p1")

        assert index.keys() == ["a", "c"]
        assert index.lookup("a") == frozenset({"p1", "p2"})

    def test_get_entry_does_not_refresh(self) -> None:
        clock = FakeClock()
        index = BoundedIndex(max_size=2, clock=clock)
        index.put("a", "p")
        index.put("b", "p")

        entry = index.get_entry("a")

        assert entry is not None
        assert entry.last_accessed == 1.0
        assert index.keys() == ["a", "b"]

    def test_lookup_updates_last_accessed(self) -> None:
        clock = FakeClock()
        index = BoundedIndex(max_size=2, clock=clock)
        index.put("a", "p")

        index.lookup("a")

        entry = index.get_entry("a")
        assert entry is not None
        assert entry.last_accessed == 2.0

    def test_lookup_returns_snapshot(self) -> None:
        index = BoundedIndex(max_size=2)
        index.put("a", "p1")

        members = index.lookup("a")
        index.put("a", "p2")

        assert members == frozenset({"p1"})

    def test_remove_by_prefix(self) -> None:
        index = BoundedIndex(max_size=10)
        index.put("j1:a", "p")
        index.put("j1:b", "p")
        index.put("j2:a", "p")

        removed = index.remove_by_prefix("j1:")

        assert removed == 2
        assert index.keys() == ["j2:a"]

    def test_clear(self) -> None:
        index = BoundedIndex(max_size=10)
        index.put("a", "p")

        index.clear()

        assert len(index) == 0

    def test_eviction_reports_metrics(self) -> None:
        hook = MagicMock()
        index = BoundedIndex(max_size=1, metrics_hook=hook)

        index.put("a", "p")
        index.put("b", "p")

        hook.increment.assert_called_once_with(names.INDEX_EVICTIONS_TOTAL, 1)
        hook.record_gauge.assert_called_once_with(names.INDEX_SIZE, 1)
