from __future__ import annotations

from fastapi import APIRouter, Depends

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import get_kv_store

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(store: AbstractKeyValueStore | None = Depends(get_kv_store)) -> dict:
    """Liveness check.

    Also reports whether the key-value store is configured; without it quotas
    and shareable results are disabled but the API still serves requests.
    """

    return {"status": "ok", "store": "configured" if store is not None else "disabled"}
