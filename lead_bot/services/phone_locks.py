"""Per-phone locks so turns from one sender are applied one at a time."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List


class PhoneLocks:
    """Hands out one lock per phone and forgets it once no turn holds or waits on it."""

    def __init__(self) -> None:
        self._guard = Lock()
        # phone -> [lock, number of turns holding or waiting]
        self._entries: Dict[str, List] = {}

    def _acquire_entry(self, phone: str) -> Lock:
        with self._guard:
            entry = self._entries.get(phone)
            if entry is None:
                entry = self._entries[phone] = [Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _release_entry(self, phone: str) -> None:
        with self._guard:
            entry = self._entries[phone]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[phone]

    @contextmanager
    def hold(self, phone: str) -> Iterator[None]:
        lock = self._acquire_entry(phone)
        try:
            with lock:
                yield
        finally:
            self._release_entry(phone)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
