"""Factory for the key-value store adapter.

Returns None when the store is not provisioned. That is a supported
deployment mode: rate limiting, result sharing and the insight cache all
switch to their disabled behaviour.
"""

from __future__ import annotations

import logging

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.in_memory import InMemoryKeyValueStore
from app.adapters.kv.upstash import UpstashRestStore
from app.core.config import StoreSettings, settings

logger = logging.getLogger(__name__)

_UNSET = object()
_store: AbstractKeyValueStore | None | object = _UNSET


def create_kv_store(store_settings: StoreSettings | None = None) -> AbstractKeyValueStore | None:
    """Build a store adapter from settings.

    Args:
        store_settings: Optional override; defaults to global settings.

    Returns:
        A configured adapter, or None when endpoint or credential is missing.
    """
    cfg = store_settings or settings.store

    if cfg.backend == "memory":
        logger.info("kv_store.configured", extra={"backend": "memory"})
        return InMemoryKeyValueStore()

    if not cfg.configured:
        logger.info("kv_store.disabled", extra={"reason": "credentials_not_set"})
        return None

    logger.info("kv_store.configured", extra={"backend": "upstash"})
    return UpstashRestStore(
        url=cfg.url or "",
        token=cfg.token or "",
        timeout_seconds=cfg.timeout_seconds,
    )


def get_kv_store() -> AbstractKeyValueStore | None:
    """Return the process-wide store adapter, building it on first use."""
    global _store
    if _store is _UNSET:
        _store = create_kv_store()
    return _store  # type: ignore[return-value]


def reset_kv_store() -> None:
    """Forget the cached adapter (settings changed, primarily in tests)."""
    global _store
    _store = _UNSET
