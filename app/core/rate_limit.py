"""Rate limiting wiring for FastAPI routes.

Site tools are limited per visitor: subscribers (``ks_subscriber`` cookie
present) by their token with the higher limit, everyone else by client IP.
Extension endpoints are limited per installation id, which only arrives in
the request body, so those routes call ``enforce_quota`` themselves.

When no key-value store is configured the limiter reports DISABLED and every
request passes.
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, Response, status

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import get_kv_store
from app.core.config import settings
from app.schemas.quota import QuotaClass, RateLimitResult, client_identity
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def get_rate_limiter(
    store: AbstractKeyValueStore | None = Depends(get_kv_store),
) -> RateLimiter:
    return RateLimiter(store)


def resolve_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def denial_message(quota: QuotaClass, subscriber: bool, limit: int) -> str:
    if quota is QuotaClass.GENERAL_TOOL:
        if subscriber:
            return f"You've reached today's limit of {limit} tool uses. Come back tomorrow."
        return (
            f"You've used all {limit} free tool uses for today. Come back tomorrow, "
            f"or subscribe for free to unlock {quota.limit_subscriber} daily uses."
        )
    if quota is QuotaClass.INSIGHT:
        return f"Daily insight limit reached ({limit}/day). Come back tomorrow."
    return f"Daily COA analysis limit reached ({limit}/day). Create a free account for higher limits."


def apply_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
    if result.disabled or not settings.app.rate_limit_include_headers:
        return
    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(result.reset_at)


async def enforce_quota(
    limiter: RateLimiter,
    identity: str,
    quota: QuotaClass,
    response: Response,
    *,
    subscriber: bool = False,
) -> RateLimitResult:
    """Consume one unit of ``quota`` or raise HTTP 429.

    Raises:
        HTTPException: 429 with an upgrade / come-back-later payload.
        StoreAppError: The configured store failed.
    """
    result = await limiter.check_and_consume(identity, quota, subscriber=subscriber)
    if result.allowed:
        apply_rate_limit_headers(response, result)
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "quota": quota.label,
            "subscriber": subscriber,
            "limit": result.limit,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(result.retry_after_seconds or 0)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "code": "rate_limit_exceeded",
            "message": denial_message(quota, subscriber, result.limit),
            "quota": quota.label,
            "limit": result.limit,
            "remaining": 0,
            "upgrade": quota is QuotaClass.GENERAL_TOOL and not subscriber,
        },
        headers=headers or None,
    )


async def enforce_tool_quota(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RateLimitResult:
    """FastAPI dependency charging the general tool quota."""
    subscriber_token = request.cookies.get(settings.app.subscriber_cookie) or None
    identity = client_identity(resolve_client_ip(request), subscriber_token)
    return await enforce_quota(
        limiter,
        identity,
        QuotaClass.GENERAL_TOOL,
        response,
        subscriber=subscriber_token is not None,
    )
