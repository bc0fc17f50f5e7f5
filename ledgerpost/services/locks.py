"""Per-document locks.

Serializes operations on the same document inside one process so a retried
post observes the first call's write-back. Does nothing across processes.
Entries are reference counted and dropped once no caller holds or waits on them.
"""
from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple


class DocumentLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._locks: Dict[Tuple[str, str], List] = {}

    def _acquire_entry(self, key: Tuple[str, str]) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: Tuple[str, str]) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, kind: str, document_id: str) -> Iterator[None]:
        key = (kind, document_id)
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)

    @contextmanager
    def hold_many(self, kind: str, document_ids: Iterable[str]) -> Iterator[None]:
        # Sorted acquisition order avoids deadlock between overlapping payments
        with ExitStack() as stack:
            for document_id in sorted(set(document_ids)):
                stack.enter_context(self.hold(kind, document_id))
            yield
