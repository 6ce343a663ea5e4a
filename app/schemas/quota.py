"""Quota classes and rate limit outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

DAY_SECONDS = 24 * 60 * 60

_UNSAFE_IDENTITY_CHARS = re.compile(r"[^A-Za-z0-9_]")
MAX_IDENTITY_LENGTH = 64


class QuotaClass(Enum):
    """Independent usage counters with static per-tier limits.

    Each value is ``(name, key prefix, window seconds, anonymous limit,
    subscriber limit)``.
    """

    GENERAL_TOOL = ("general-tool", "kushsavvy:ratelimit", DAY_SECONDS, 10, 30)
    INSIGHT = ("insight", "kushsavvy:ext:insight", DAY_SECONDS, 50, 50)
    # COA analysis runs on the more expensive upstream model.
    COA = ("coa", "kushsavvy:ext:coa", DAY_SECONDS, 5, 5)

    def __init__(
        self,
        label: str,
        prefix: str,
        window_seconds: int,
        limit_anonymous: int,
        limit_subscriber: int,
    ) -> None:
        self.label = label
        self.prefix = prefix
        self.window_seconds = window_seconds
        self.limit_anonymous = limit_anonymous
        self.limit_subscriber = limit_subscriber

    def limit_for(self, subscriber: bool) -> int:
        return self.limit_subscriber if subscriber else self.limit_anonymous


class QuotaStatus(str, Enum):
    DISABLED = "disabled"
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of ``RateLimiter.check_and_consume``.

    Attributes:
        status: DISABLED when no store is configured (fail open), otherwise
            ALLOWED or DENIED.
        limit: Applicable limit for the identity's tier (0 when disabled).
        remaining: Requests left in the trailing window.
        reset_at: UNIX epoch seconds when the current fixed window ends.
        retry_after_seconds: Suggested wait when denied.
    """

    status: QuotaStatus
    limit: int = 0
    remaining: int = 0
    reset_at: int = 0
    retry_after_seconds: int | None = None

    @property
    def allowed(self) -> bool:
        return self.status is not QuotaStatus.DENIED

    @property
    def disabled(self) -> bool:
        return self.status is QuotaStatus.DISABLED

    @classmethod
    def disabled_result(cls) -> "RateLimitResult":
        return cls(status=QuotaStatus.DISABLED)


def sanitize_identity_part(value: str) -> str:
    """Reduce ``value`` to ``[A-Za-z0-9_]`` and cap it at 64 characters.

    >>> sanitize_identity_part("abc;DROP")
    'abcDROP'
    """
    return _UNSAFE_IDENTITY_CHARS.sub("", value)[:MAX_IDENTITY_LENGTH]


def installation_identity(installation_id: str) -> str:
    """Identity for browser-extension quotas."""
    return f"install:{sanitize_identity_part(installation_id)}"


def client_identity(ip: str | None, subscriber_token: str | None = None) -> str:
    """Identity for site tool quotas.

    Subscribers are counted by their token and anonymous visitors by address,
    under distinct prefixes so the two counters never collide.
    """
    if subscriber_token:
        return f"sub:{sanitize_identity_part(subscriber_token)}"
    # Separators become underscores so distinct addresses stay distinct.
    address = re.sub(r"[.:]", "_", ip or "unknown")
    return f"ip:{sanitize_identity_part(address)}"
