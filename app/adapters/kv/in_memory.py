"""In-memory key-value store.

Notes:
- Per-process only: running multiple workers gives each its own store.
- Thread-safe: uses a lock around shared state.
- The clock is injectable so TTL expiry can be tested without sleeping.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Callable

from app.adapters.kv.base import AbstractKeyValueStore


@dataclass
class _Entry:
    value: str
    expires_at: float | None


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dict-backed store mirroring the Redis semantics the services rely on."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryKeyValueStore(size={len(self._data)})"

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl_seconds: int | None) -> float | None:
        if ttl_seconds is None:
            return None
        return self._clock() + ttl_seconds

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        with self._lock:
            self._data[key] = _Entry(value=value, expires_at=self._expiry(ttl_seconds))

    async def keys(self, pattern: str) -> list[str]:
        with self._lock:
            return [
                key
                for key in list(self._data)
                if self._live_entry(key) is not None and fnmatchcase(key, pattern)
            ]

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    async def incr(self, key: str, ttl_seconds: int) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                entry = _Entry(value="0", expires_at=self._expiry(ttl_seconds))
                self._data[key] = entry
            entry.value = str(int(entry.value) + 1)
            return int(entry.value)

    async def decr(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                entry = _Entry(value="0", expires_at=None)
                self._data[key] = entry
            entry.value = str(int(entry.value) - 1)
            return int(entry.value)

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires; None for missing or persistent keys."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
