"""Content-addressed persistence for shareable tool results.

Results are written once under ``result:{tool}:{hash}`` and expire after 90
days. Comparison-style tools additionally keep a lookup index from the
canonical (unordered, case-insensitive) argument pair to the hash of the
result answering it, so ``A vs B`` and ``b vs a`` are generated only once.

The lookup entry is written with the same retention as the result and is
not refreshed on access, so it can briefly point at a result that has
already expired; ``find_existing_comparison`` then reports a miss.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Callable

from pydantic import ValidationError

from app.adapters.kv.base import AbstractKeyValueStore
from app.schemas.results import ComparisonMatch, ResultDraft, StoredResult

logger = logging.getLogger(__name__)

RESULT_TTL_SECONDS = 60 * 60 * 24 * 90
HASH_LENGTH = 8
COMPARISON_TOOL = "strain-compare"
DEFAULT_LIST_LIMIT = 1000

# URL-safe alphabet, same as nanoid's default
_HASH_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_hash(length: int = HASH_LENGTH) -> str:
    """Random public identifier (64**8 possibilities for the default length)."""
    return "".join(secrets.choice(_HASH_ALPHABET) for _ in range(length))


def result_key(tool: str, hash_: str) -> str:
    return f"result:{tool}:{hash_}"


def canonical_pair(first: str, second: str) -> tuple[str, str]:
    """Order-independent, case-insensitive form of an argument pair.

    >>> canonical_pair("OG Kush", "Blue Dream")
    ('blue dream', 'og kush')
    """
    a, b = sorted((first.strip().lower(), second.strip().lower()))
    return a, b


def _escape_key_part(part: str) -> str:
    # ":" separates the pair, so it may not appear unescaped inside a name
    return part.replace("%", "%25").replace(":", "%3A")


def comparison_lookup_key(first: str, second: str) -> str:
    a, b = canonical_pair(first, second)
    return f"comparison-lookup:{_escape_key_part(a)}:{_escape_key_part(b)}"


class ResultStore:
    """Persistence and lookup of shareable results.

    Every operation degrades to a miss / no-op when no store is configured.
    Transport failures of a configured store propagate as ``StoreAppError``.

    Args:
        store: Shared key-value store, or None when not provisioned.
        clock: Time source for ``createdAt`` (UNIX seconds).
        id_factory: Generator of public identifiers.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore | None,
        *,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = generate_hash,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    @property
    def enabled(self) -> bool:
        return self._store is not None

    async def store(self, draft: ResultDraft) -> str | None:
        """Persist ``draft`` under a fresh identifier.

        Returns:
            The new hash, or None when no store is configured (the result is
            still deliverable, just not shareable).
        """
        if self._store is None:
            return None

        hash_ = self._id_factory()
        stored = StoredResult(
            **draft.model_dump(),
            created_at=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            hash=hash_,
        )
        await self._store.set(
            result_key(draft.tool, hash_),
            stored.to_wire(),
            ttl_seconds=RESULT_TTL_SECONDS,
        )
        logger.info("results.stored", extra={"tool": draft.tool, "hash": hash_})
        return hash_

    async def fetch(self, tool: str, hash_: str) -> StoredResult | None:
        """Load a stored result.

        Unconfigured store, unknown hash, expired entry and unreadable
        payload all produce None.
        """
        if self._store is None:
            return None

        raw = await self._store.get(result_key(tool, hash_))
        if raw is None:
            return None

        try:
            result = StoredResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("results.fetch_malformed", extra={"tool": tool, "hash": hash_})
            return None

        if result.hash != hash_:
            result = result.model_copy(update={"hash": hash_})
        return result

    async def find_existing_comparison(self, first: str, second: str) -> ComparisonMatch | None:
        """Resolve an earlier comparison of the same pair, in either order."""
        if self._store is None:
            return None

        existing_hash = await self._store.get(comparison_lookup_key(first, second))
        if not existing_hash:
            return None

        result = await self.fetch(COMPARISON_TOOL, existing_hash)
        if result is None:
            logger.debug("results.comparison_stale", extra={"hash": existing_hash})
            return None
        return ComparisonMatch(hash=existing_hash, result=result)

    async def store_comparison(self, first: str, second: str, draft: ResultDraft) -> str | None:
        """Store a comparison and point the pair's lookup entry at it.

        The lookup entry is overwritten (last write wins); earlier results for
        the same pair are left untouched and expire on their own.
        """
        hash_ = await self.store(draft)
        if hash_ is not None:
            await self.index_comparison(first, second, hash_)
        return hash_

    async def index_comparison(self, first: str, second: str, hash_: str) -> None:
        """Point the lookup entry of the pair at an already stored comparison."""
        if self._store is None:
            return

        await self._store.set(
            comparison_lookup_key(first, second),
            hash_,
            ttl_seconds=RESULT_TTL_SECONDS,
        )

    async def list_keys(self, tool: str, limit: int = DEFAULT_LIST_LIMIT) -> list[str]:
        """Identifiers of persisted results for ``tool``, unordered, at most ``limit``."""
        if self._store is None or limit <= 0:
            return []

        keys = await self._store.keys(f"result:{tool}:*")
        return [key.rsplit(":", 1)[-1] for key in keys[:limit]]
