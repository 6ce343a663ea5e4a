"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It ensures that the TESTING environment variable is set to prevent
loading the .env file during tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents Pydantic from loading the .env file in tests
os.environ["TESTING"] = "true"

# Set default env vars that all tests might need
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
# Tests opt into the store, the challenge and the second LLM tier explicitly.
for _name in (
    "UPSTASH_REDIS_REST_URL",
    "UPSTASH_REDIS_REST_TOKEN",
    "KV_BACKEND",
    "TURNSTILE_SECRET_KEY",
    "LLM_TIER2_API_KEY",
    "ANTHROPIC_API_KEY",
):
    os.environ.pop(_name, None)

from unittest.mock import Mock

import pytest

from app.adapters.kv import InMemoryKeyValueStore, reset_kv_store

# 2024-01-01T00:00:00Z, the start of a daily window
DAY_START = 1704067200.0


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=DAY_START)


@pytest.fixture
def kv_store(clock: Mock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture(autouse=True)
def _reset_cached_store():
    reset_kv_store()
    yield
    reset_kv_store()
