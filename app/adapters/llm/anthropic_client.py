"""Anthropic (Claude) LLM client adapter."""

import logging
from typing import Any

from anthropic import AnthropicError, AsyncAnthropic

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.openai_client import DEFAULT_SYSTEM_PROMPT, parse_json_object
from app.core.errors import LLMAppError

logger = logging.getLogger(__name__)

# The messages API requires an explicit output budget.
DEFAULT_MAX_TOKENS = 1500

_PASSTHROUGH_PARAMS = {
    "temperature",
    "top_p",
    "top_k",
}


class AnthropicClient(AbstractLLMClient):
    """Client for Claude messages.

    Claude has no JSON response mode, so the object is requested through the
    system prompt and recovered with ``parse_json_object``.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_json(
        self,
        prompt: str,
        *,
        system: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": kwargs.pop("max_tokens", DEFAULT_MAX_TOKENS),
            "system": system or DEFAULT_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
        }
        for param in _PASSTHROUGH_PARAMS:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.messages.create(**request_params)
        except AnthropicError as exc:
            logger.error(
                "llm.request_failed",
                extra={"model": self.model, "error_type": type(exc).__name__},
            )
            raise LLMAppError(
                code="llm_request_failed",
                message=f"Anthropic API error: {exc}",
                details={"model": self.model},
            ) from exc

        text = next(
            (block.text for block in response.content if block.type == "text"),
            "",
        )
        if not text.strip():
            raise LLMAppError(
                code="llm_empty_response",
                message="LLM returned empty response",
                details={"model": self.model},
            )

        return parse_json_object(text.strip())
