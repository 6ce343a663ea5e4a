"""OpenAI LLM client adapter."""

import json
import logging
import re
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "Output JSON only. No extra text or markdown formatting."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_PASSTHROUGH_PARAMS = {
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "seed",
}


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse a model reply into a JSON object.

    Falls back to the outermost ``{...}`` span when the model wrapped the
    object in prose or a code fence.

    Raises:
        LLMAppError: If no JSON object can be recovered.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(content)
        if not match:
            raise LLMAppError(code="llm_invalid_json", message="Could not parse JSON from response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise LLMAppError(
                code="llm_invalid_json",
                message=f"LLM returned invalid JSON: {exc}",
            ) from exc

    if not isinstance(data, dict):
        raise LLMAppError(code="llm_invalid_json", message="LLM returned a non-object JSON value")
    return data


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        self.client = AsyncOpenAI(
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
        """Generate structured JSON using OpenAI chat completions.

        Args:
            prompt: User prompt to send to the model.
            system: System prompt; defaults to a JSON-only instruction.
            **kwargs: temperature plus the pass-through sampling options.

        Returns:
            dict[str, Any]: Parsed JSON object from the LLM response.

        Raises:
            LLMAppError: If the API call fails or the response is not valid JSON.
        """
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": kwargs.pop("temperature", 0.3),
            "response_format": {"type": "json_object"},
        }
        for param in _PASSTHROUGH_PARAMS:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as exc:
            logger.error(
                "llm.request_failed",
                extra={"model": self.model, "error_type": type(exc).__name__},
            )
            raise LLMAppError(
                code="llm_request_failed",
                message=f"OpenAI API error: {exc}",
                details={"model": self.model},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMAppError(
                code="llm_empty_response",
                message="LLM returned empty response",
                details={"model": self.model},
            )

        return parse_json_object(content.strip())
