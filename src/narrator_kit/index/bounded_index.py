# src/narrator_kit/index/bounded_index.py

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from time import monotonic

from narrator_kit.errors import UsageError
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 5000


@dataclass
class BoundedIndexEntry:
    """Keyword entry. Owned and mutated by the index only."""

    key: str
    member_ids: set[str] = field(default_factory=set)
    last_accessed: float = 0.0


class BoundedIndex:
    """Inverted index (key -> member ids) with least-recently-used eviction.

    Entries are kept in recency order, so both refresh and eviction are
    O(1) per entry. A put or a lookup counts as a use. Eviction runs under
    the same lock as the write that triggered it, so readers never see a
    partially trimmed index.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        clock: Callable[[], float] = monotonic,
    ) -> None:
        if max_size <= 0:
            raise UsageError("max_size must be > 0")
        self._max_size = max_size
        self._entries: OrderedDict[str, BoundedIndexEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._clock = clock
        self.metrics_hook = metrics_hook

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return len(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def put(self, key: str, member_id: str) -> None:
        """Add `member_id` under `key` and mark the entry as most recent."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = BoundedIndexEntry(key=key)
                self._entries[key] = entry
            else:
                self._entries.move_to_end(key)
            entry.member_ids.add(member_id)
            entry.last_accessed = self._clock()

            if len(self._entries) > self._max_size:
                self._evict()

    def lookup(self, key: str) -> frozenset[str]:
        """Member ids under `key`; refreshes the entry's recency."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return frozenset()
            self._entries.move_to_end(key)
            entry.last_accessed = self._clock()
            return frozenset(entry.member_ids)

    def get_entry(self, key: str) -> BoundedIndexEntry | None:
        """Inspect an entry without counting it as a use."""
        return self._entries.get(key)

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def remove_by_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Removed %d index entries with prefix %s", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        overflow = len(self._entries) - self._max_size
        for _ in range(overflow):
            key, _entry = self._entries.popitem(last=False)
            logger.debug("Evicted index entry: %s", key)
        self.metrics_hook.increment(names.INDEX_EVICTIONS_TOTAL, overflow)
        self.metrics_hook.record_gauge(names.INDEX_SIZE, len(self._entries))
