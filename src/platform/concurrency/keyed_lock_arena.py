"""
Keyed Lock Arena

In-process exclusive locks keyed by id (trip id, reservation id). Used with
the memory store, where one process owns all state.
Entries are reference counted and dropped once no thread holds or
waits on them, so the arena only grows with the number of keys in use.
"""

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
import threading

from src.platform.concurrency.i_keyed_lock import IKeyedLock


class _LockEntry:
    __slots__ = ('lock', 'refcount')

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.refcount = 0


class KeyedLockArena(IKeyedLock):
    def __init__(self, *, name: str) -> None:
        self.name = name
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _LockEntry] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """
        Acquire the lock for ``key`` for the duration of the block

        Usage:
            with trip_locks.hold(trip_id):
                ledger.reserve(...)
        """
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _LockEntry()
            entry.refcount += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.refcount -= 1
                if not entry.refcount:
                    del self._entries[key]

    def active_keys(self) -> int:
        """Number of keys currently held or waited on"""
        with self._guard:
            return len(self._entries)

    def __repr__(self) -> str:
        return f'KeyedLockArena(name={self.name!r}, active={self.active_keys()})'
