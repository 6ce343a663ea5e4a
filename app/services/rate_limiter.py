"""Sliding-window rate limiter over the shared key-value store.

The trailing-window count is approximated from two fixed-window counters:
the requests of the current window plus the previous window's requests
weighted by how much of it still overlaps the trailing window. The count
therefore decays continuously instead of resetting at window boundaries.

Counters live in the store, so every worker shares them. Correctness under
concurrent requests relies on the store's atomic INCR/DECR only; there is
no client-side locking.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from app.adapters.kv.base import AbstractKeyValueStore
from app.core.logging import hash_for_log
from app.schemas.quota import QuotaClass, QuotaStatus, RateLimitResult

logger = logging.getLogger(__name__)


class RateLimiter:
    """Per-identity quota tracker for every ``QuotaClass``.

    Args:
        store: Shared key-value store, or None when not provisioned. Without
            a store every call returns a DISABLED (allow) result.
        clock: Time source returning UNIX seconds. Windows are aligned to
            epoch time so all processes agree on them.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore | None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._store is not None

    @staticmethod
    def _counter_key(quota: QuotaClass, identity: str, window_index: int) -> str:
        return f"{quota.prefix}:{identity}:{window_index}"

    async def check_and_consume(
        self,
        identity: str,
        quota: QuotaClass,
        *,
        subscriber: bool = False,
    ) -> RateLimitResult:
        """Record one request for ``identity`` if it fits in the quota.

        Denied requests are not counted.

        Args:
            identity: Namespaced identity (``ip:…``, ``sub:…``, ``install:…``).
            quota: Which independent counter to charge.
            subscriber: Selects the subscriber limit of the quota class.

        Returns:
            RateLimitResult with DISABLED, ALLOWED or DENIED status.

        Raises:
            ValueError: If identity is empty.
            StoreAppError: If the configured store fails.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")

        if self._store is None:
            return RateLimitResult.disabled_result()

        limit = quota.limit_for(subscriber)
        window = quota.window_seconds
        now = self._clock()
        window_index = int(now // window)
        reset_at = (window_index + 1) * window
        elapsed_fraction = (now - window_index * window) / window

        current_key = self._counter_key(quota, identity, window_index)
        previous_key = self._counter_key(quota, identity, window_index - 1)

        previous = int(await self._store.get(previous_key) or 0)
        current = int(await self._store.get(current_key) or 0)
        weighted_previous = math.floor(previous * (1 - elapsed_fraction))

        if weighted_previous + current >= limit:
            return self._denied(
                quota, identity, limit, now, reset_at, previous, current, elapsed_fraction,
            )

        # Counters outlive the following window so they can be weighted there.
        new_current = await self._store.incr(current_key, ttl_seconds=window * 2 + 1)
        used = weighted_previous + new_current
        if used > limit:
            # Lost a race against a concurrent request from the same identity.
            await self._store.decr(current_key)
            return self._denied(
                quota, identity, limit, now, reset_at, previous, new_current - 1, elapsed_fraction,
            )

        result = RateLimitResult(
            status=QuotaStatus.ALLOWED,
            limit=limit,
            remaining=max(0, limit - used),
            reset_at=int(reset_at),
        )
        logger.debug(
            "rate_limit.allowed",
            extra={
                "quota": quota.label,
                "identity_hash": hash_for_log(identity),
                "limit": limit,
                "remaining": result.remaining,
            },
        )
        return result

    def _denied(
        self,
        quota: QuotaClass,
        identity: str,
        limit: int,
        now: float,
        reset_at: float,
        previous: int,
        current: int,
        elapsed_fraction: float,
    ) -> RateLimitResult:
        used = math.floor(previous * (1 - elapsed_fraction)) + current
        retry_after = _seconds_until_slot_frees(
            limit=limit,
            previous=previous,
            current=current,
            elapsed=now - (reset_at - quota.window_seconds),
            window=quota.window_seconds,
        )
        logger.info(
            "rate_limit.denied",
            extra={
                "quota": quota.label,
                "identity_hash": hash_for_log(identity),
                "limit": limit,
                "retry_after_s": retry_after,
            },
        )
        return RateLimitResult(
            status=QuotaStatus.DENIED,
            limit=limit,
            remaining=max(0, limit - used),
            reset_at=int(reset_at),
            retry_after_seconds=retry_after,
        )


def _seconds_until_slot_frees(
    *,
    limit: int,
    previous: int,
    current: int,
    elapsed: float,
    window: int,
) -> int:
    """Whole seconds until ``floor(previous * (1 - f)) + current < limit``.

    That holds once ``previous * (window - s) < (limit - current) * window``
    for ``s`` seconds into the window, strictly. Integer arithmetic keeps the
    boundary exact. When the current window alone exhausts the limit, the
    wait runs into the next window, where today's count becomes the decaying
    previous one. Assumes no further traffic from the identity.
    """
    if current < limit:
        headroom = limit - current
        if previous < headroom:
            return 1
        target = window * (previous - headroom) // previous + 1
    else:
        target = window + window * (current - limit) // current + 1
    return max(1, math.ceil(target - elapsed))
