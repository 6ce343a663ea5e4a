"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

The key-value store credentials are optional on purpose. When either of them
is missing the quota and result-sharing layers run in their disabled mode.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first.
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LLMSettings(BaseSettings):
    """Upstream generation provider configuration.

    The provider is only needed when a tool endpoint is actually called, so
    nothing here is required at import time.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (openai or anthropic)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Model used for tool generation",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class Tier2LLMSettings(BaseSettings):
    """Second-tier generator: insight fallback, COA review and page parsing.

    Left unconfigured, insights run on the first tier alone and COA review
    reports the service as unavailable.
    """

    provider: str = Field(
        "anthropic",
        description="LLM provider name (openai or anthropic)",
    )
    model: str = Field(
        "claude-sonnet-4-6",
        description="Model used for fallback insights, COA review and page parsing",
    )
    api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("LLM_TIER2_API_KEY", "ANTHROPIC_API_KEY"),
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_TIER2_",
        case_sensitive=False,
        populate_by_name=True,
    )


class StoreSettings(BaseSettings):
    """Remote key-value store (Upstash Redis REST) configuration."""

    url: str | None = Field(
        None,
        description="REST endpoint of the key-value store",
    )
    token: str | None = Field(
        None,
        description="Bearer credential for the key-value store",
    )
    timeout_seconds: float = Field(
        5.0,
        description="Transport timeout for store calls in seconds",
    )
    backend: Literal["upstash", "memory"] = Field(
        "upstash",
        validation_alias=AliasChoices("KV_BACKEND", "UPSTASH_REDIS_REST_BACKEND"),
        description="Store backend. 'memory' keeps everything in-process (local dev only).",
    )

    model_config = SettingsConfigDict(
        env_prefix="UPSTASH_REDIS_REST_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def configured(self) -> bool:
        """Whether both endpoint and credential are present."""
        return bool(self.url) and bool(self.token)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    site_url: str = Field(
        "https://kushsavvy.com",
        description="Public base URL used in share links and the results sitemap",
    )
    subscriber_cookie: str = Field(
        "ks_subscriber",
        description="Cookie whose presence marks a subscriber-tier request",
    )
    subscriber_cookie_max_age: int = Field(
        31_536_000,
        description="Lifetime of the subscriber cookie in seconds",
    )
    turnstile_secret_key: str | None = Field(
        None,
        validation_alias=AliasChoices("TURNSTILE_SECRET_KEY", "APP_TURNSTILE_SECRET_KEY"),
        description="Cloudflare Turnstile secret. Unset disables the bot challenge.",
    )
    turnstile_verify_url: str = Field(
        "https://challenges.cloudflare.com/turnstile/v0/siteverify",
        description="Turnstile verification endpoint",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers on tool responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=LLMSettings)
    llm_tier2: Tier2LLMSettings = Field(default_factory=Tier2LLMSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
