from __future__ import annotations

from typing import List, Tuple

from ..domain.models import HistoryEntry
from .rwlock import ReadWriteLock


class HistoryStore:
    """Append-only, in-memory history of timestamped readings.

    The poller is the only writer. Request handlers take snapshots, which are
    tuples copied under the shared lock, so a reader never sees a half-applied
    append and can serialize its copy without holding the lock.
    """

    def __init__(self) -> None:
        self._entries: List[HistoryEntry] = []
        self._lock = ReadWriteLock()

    def append(self, entry: HistoryEntry) -> None:
        with self._lock.write():
            self._entries.append(entry)

    def snapshot(self) -> Tuple[HistoryEntry, ...]:
        with self._lock.read():
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)
