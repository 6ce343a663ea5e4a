"""Tool orchestration: validation, dedup lookup, generation and sharing.

Flow for one request (quota is enforced by the HTTP layer beforehand):

1. Validate required input fields
2. For pair-deduplicated tools, look for an existing equivalent result
3. On miss, call the upstream generator
4. Persist the result for sharing; failure to persist only costs the link
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import AppError, ValidationAppError
from app.schemas.results import ResultDraft
from app.services.result_store import ResultStore
from app.services.sitemap import result_path
from app.services.tools import TOOLS, ToolDefinition

logger = logging.getLogger(__name__)


@dataclass
class ToolRunResult:
    """Output of one tool run plus its sharing state."""

    tool: str
    output: dict[str, Any]
    share_hash: str | None = None
    cached: bool = False

    @property
    def share_url(self) -> str | None:
        return result_path(self.tool, self.share_hash) if self.share_hash else None

    def to_response(self) -> dict[str, Any]:
        body = {**self.output, "shareHash": self.share_hash, "cached": self.cached}
        if self.share_url:
            body["shareUrl"] = self.share_url
        return body


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_fields(tool: ToolDefinition, payload: dict[str, Any]) -> list[str]:
    return [name for name in tool.required_fields if _is_blank(payload.get(name))]


class ToolService:
    """Runs registered tools against the generator and the result store."""

    def __init__(self, llm: AbstractLLMClient, results: ResultStore) -> None:
        self.llm = llm
        self.results = results

    def _get_tool(self, slug: str) -> ToolDefinition:
        tool = TOOLS.get(slug)
        if tool is None:
            raise ValidationAppError(
                code="unknown_tool",
                message=f"Unknown tool: {slug}",
                details={"tool": slug},
            )
        return tool

    async def _find_duplicate(self, tool: ToolDefinition, payload: dict[str, Any]) -> ToolRunResult | None:
        if tool.pair_fields is None:
            return None

        first, second = (str(payload[name]) for name in tool.pair_fields)
        try:
            match = await self.results.find_existing_comparison(first, second)
        except AppError as exc:
            logger.warning(
                "tool.dedup_lookup_failed",
                extra={"tool": tool.slug, "error_code": exc.code},
            )
            return None
        if match is None:
            return None

        try:
            output = json.loads(match.result.output)
        except json.JSONDecodeError:
            logger.warning("tool.dedup_output_malformed", extra={"tool": tool.slug, "hash": match.hash})
            return None

        logger.info("tool.dedup_hit", extra={"tool": tool.slug, "hash": match.hash})
        return ToolRunResult(tool=tool.slug, output=output, share_hash=match.hash, cached=True)

    async def _persist(self, tool: ToolDefinition, draft: ResultDraft, payload: dict[str, Any]) -> str | None:
        try:
            share_hash = await self.results.store(draft)
        except AppError as exc:
            logger.error(
                "tool.share_store_failed",
                extra={"tool": tool.slug, "error_code": exc.code, "error_message": exc.message},
            )
            return None

        if share_hash is None or tool.pair_fields is None:
            return share_hash

        first, second = (str(payload[name]) for name in tool.pair_fields)
        try:
            await self.results.index_comparison(first, second, share_hash)
        except AppError as exc:
            # The result itself is stored; only dedup of this pair is lost.
            logger.warning(
                "tool.comparison_index_failed",
                extra={"tool": tool.slug, "hash": share_hash, "error_code": exc.code},
            )
        return share_hash

    async def run(self, slug: str, payload: dict[str, Any]) -> ToolRunResult:
        """Produce (or reuse) the result of ``slug`` for ``payload``.

        Raises:
            ValidationAppError: Unknown tool or missing required fields.
            LLMAppError: The generator failed.
            ConfigurationAppError: No generator is configured.
        """
        tool = self._get_tool(slug)

        missing = _missing_fields(tool, payload)
        if missing:
            raise ValidationAppError(
                code="missing_fields",
                message="Missing required fields: " + ", ".join(missing),
                details={"tool": slug, "missing_fields": missing},
            )

        duplicate = await self._find_duplicate(tool, payload)
        if duplicate is not None:
            return duplicate

        output = await self.llm.generate_json(tool.build_prompt(payload))

        draft = ResultDraft(
            tool=slug,
            input=payload,
            output=json.dumps(output),
            meta=tool.build_meta(payload, output),
        )
        share_hash = await self._persist(tool, draft, payload)

        logger.info(
            "tool.completed",
            extra={"tool": slug, "shareable": share_hash is not None},
        )
        return ToolRunResult(tool=slug, output=output, share_hash=share_hash)
