"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Quota exhaustion is deliberately absent: a denied request is a normal
outcome of the rate limiter, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    missing_fields: list[str]
    tool: str
    operation: str
    http_status: int
    model: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input or configuration validation fails."""


class LLMAppError(AppError):
    """Raised when the upstream generation call fails or returns garbage."""


class AuthenticationAppError(AppError):
    """Raised when the bot challenge is missing or rejected."""


class StoreAppError(AppError):
    """Raised when a configured key-value store call fails in transit."""


class ConfigurationAppError(AppError):
    """Raised when a required collaborator (e.g. the LLM provider) is not configured."""
