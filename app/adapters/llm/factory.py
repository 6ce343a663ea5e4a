"""Factory for creating the upstream generator clients."""

from __future__ import annotations

from app.adapters.llm.anthropic_client import AnthropicClient
from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.openai_client import OpenAIClient
from app.core.config import LLMSettings, Tier2LLMSettings, settings
from app.core.errors import ConfigurationAppError

_client: AbstractLLMClient | None = None
_tier2_client: AbstractLLMClient | None = None

_PROVIDERS = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
}


def create_llm_client(llm_settings: LLMSettings | Tier2LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the LLM client for the configured provider.

    Raises:
        ConfigurationAppError: If provider-specific requirements are not met.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    client_cls = _PROVIDERS.get(provider)
    if client_cls is None:
        raise ConfigurationAppError(
            code="llm_unknown_provider",
            message=f"Unknown LLM provider: '{provider}'. Supported providers: {', '.join(_PROVIDERS)}",
        )

    if not cfg.api_key:
        env_prefix = cfg.model_config.get("env_prefix", "")
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message="Service temporarily unavailable",
            details={"hint": f"Set the {env_prefix}API_KEY environment variable"},
        )

    return client_cls(
        api_key=cfg.api_key,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )


def get_llm_client() -> AbstractLLMClient:
    """Return the process-wide client, created on first use.

    Creation is deferred to the first tool call so the API can start (and
    serve shared results) without provider credentials.
    """
    global _client
    if _client is None:
        _client = create_llm_client()
    return _client


def get_tier2_llm_client() -> AbstractLLMClient | None:
    """Return the process-wide second-tier client, or None when it has no key."""
    global _tier2_client
    if _tier2_client is None and settings.llm_tier2.api_key:
        _tier2_client = create_llm_client(settings.llm_tier2)
    return _tier2_client
