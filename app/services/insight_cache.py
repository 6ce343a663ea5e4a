"""Compute-avoidance cache for browser-extension product insights.

Entries are keyed by the normalized product name and category and expire
after 24 hours. There is no public identifier and no dedup index: lookups
are already by canonical key.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from app.adapters.kv.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)

INSIGHT_TTL_SECONDS = 24 * 60 * 60

_WHITESPACE = re.compile(r"\s+")


def insight_cache_key(subject: str, category: str) -> str:
    """
    >>> insight_cache_key("Blue  Dream", "flower")
    'insight:blue_dream:flower'
    """
    normalized = _WHITESPACE.sub("_", subject.strip().lower())
    return f"insight:{normalized}:{category}"


class InsightCache:
    def __init__(self, store: AbstractKeyValueStore | None) -> None:
        self._store = store

    async def get_cached(self, subject: str, category: str) -> dict[str, Any] | None:
        if self._store is None:
            return None

        key = insight_cache_key(subject, category)
        raw = await self._store.get(key)
        if raw is None:
            logger.debug("insight_cache.miss", extra={"category": category})
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("insight_cache.malformed", extra={"category": category})
            return None
        if not isinstance(payload, dict):
            return None

        logger.debug("insight_cache.hit", extra={"category": category})
        return payload

    async def set_cached(self, subject: str, category: str, payload: dict[str, Any]) -> None:
        if self._store is None:
            return
        await self._store.setex(
            insight_cache_key(subject, category),
            json.dumps(payload),
            INSIGHT_TTL_SECONDS,
        )
