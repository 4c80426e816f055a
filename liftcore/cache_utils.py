from __future__ import annotations

from dataclasses import dataclass
from time import time
from typing import Hashable


@dataclass
class CacheCounter:
    hits: int = 0
    misses: int = 0


class TTLCache:
    def __init__(self, ttl_seconds: int = 60):
        self.ttl = ttl_seconds
        self._store: dict[Hashable, tuple[float, object]] = {}
        self.counter = CacheCounter()

    def set(self, key: Hashable, value: object) -> None:
        self._store[key] = (time(), value)

    def get(self, key: Hashable):
        item = self._store.get(key)
        if not item:
            self.counter.misses += 1
            return None
        ts, val = item
        if time() - ts > self.ttl:
            self._store.pop(key, None)
            self.counter.misses += 1
            return None
        self.counter.hits += 1
        return val

    def invalidate(self, key: Hashable) -> None:
        self._store.pop(key, None)

    def keys(self) -> list[Hashable]:
        return list(self._store)

    def clear(self) -> None:
        self._store.clear()
        self.counter = CacheCounter()

    def __len__(self) -> int:
        return len(self._store)
