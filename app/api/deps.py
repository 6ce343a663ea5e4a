"""Service wiring for route handlers.

Each dependency builds a thin service object over the process-wide adapters.
Tests swap the adapters through ``app.dependency_overrides`` (usually
``get_kv_store``, ``get_llm``, ``get_optional_llm`` and ``get_tier2_llm``).
"""

from __future__ import annotations

import logging

from fastapi import Depends

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import get_kv_store
from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import get_llm_client, get_tier2_llm_client
from app.core.errors import ConfigurationAppError
from app.services.extension_service import ExtensionService
from app.services.insight_cache import InsightCache
from app.services.result_store import ResultStore
from app.services.tool_service import ToolService

logger = logging.getLogger(__name__)


def get_result_store(
    store: AbstractKeyValueStore | None = Depends(get_kv_store),
) -> ResultStore:
    return ResultStore(store)


def get_llm() -> AbstractLLMClient:
    return get_llm_client()


def get_optional_llm() -> AbstractLLMClient | None:
    """First-tier generator, or None so the second tier can answer alone."""
    try:
        return get_llm_client()
    except ConfigurationAppError as exc:
        logger.warning("llm.tier1_unavailable", extra={"error_code": exc.code})
        return None


def get_tier2_llm() -> AbstractLLMClient | None:
    return get_tier2_llm_client()


def get_tool_service(
    results: ResultStore = Depends(get_result_store),
    llm: AbstractLLMClient = Depends(get_llm),
) -> ToolService:
    return ToolService(llm=llm, results=results)


def get_extension_service(
    store: AbstractKeyValueStore | None = Depends(get_kv_store),
    llm: AbstractLLMClient | None = Depends(get_optional_llm),
    tier2_llm: AbstractLLMClient | None = Depends(get_tier2_llm),
) -> ExtensionService:
    return ExtensionService(llm=llm, cache=InsightCache(store), tier2_llm=tier2_llm)
