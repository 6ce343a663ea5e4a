"""Key-value store interface.

Every method is a potentially blocking network call and may raise
``StoreAppError``. Callers decide per call-site whether such a failure fails
the request or only degrades it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractKeyValueStore(ABC):
    """Minimal string key-value contract with TTL support."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored at ``key`` or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store ``value`` at ``key``, optionally expiring after ``ttl_seconds``."""
        raise NotImplementedError

    async def setex(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` with a mandatory expiry."""
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        await self.set(key, value, ttl_seconds=ttl_seconds)

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a glob ``pattern``. Enumeration only, not hot path."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def incr(self, key: str, ttl_seconds: int) -> int:
        """Atomically increment the counter at ``key`` and return the new value.

        A counter created by this call expires after ``ttl_seconds``.
        """
        raise NotImplementedError

    @abstractmethod
    async def decr(self, key: str) -> int:
        """Atomically decrement the counter at ``key`` and return the new value."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""
        return None
