"""LLM adapter layer - the upstream generators behind every tool."""

from app.adapters.llm.anthropic_client import AnthropicClient
from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client, get_llm_client, get_tier2_llm_client
from app.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "AnthropicClient",
    "OpenAIClient",
    "create_llm_client",
    "get_llm_client",
    "get_tier2_llm_client",
]
