"""Bot challenge (Cloudflare Turnstile) verification.

With no secret configured the gate is open. With a secret configured a
missing token, a rejected token or a failed verification call all block
the request.
"""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
from fastapi import Header

from app.core.config import settings
from app.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT_SECONDS = 5.0


async def verify_challenge(token: str | None) -> bool:
    """Return whether ``token`` passes the bot challenge."""
    secret = settings.app.turnstile_secret_key
    if not secret:
        return True
    if not token:
        return False

    try:
        async with httpx.AsyncClient(timeout=VERIFY_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                settings.app.turnstile_verify_url,
                json={"secret": secret, "response": token},
            )
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("challenge.verify_failed", extra={"error_type": type(exc).__name__})
        return False

    return isinstance(data, dict) and data.get("success") is True


async def require_challenge(
    x_turnstile_token: Annotated[str | None, Header(alias="X-Turnstile-Token")] = None,
) -> None:
    """FastAPI dependency rejecting requests that fail the bot challenge."""
    if not await verify_challenge(x_turnstile_token):
        logger.warning(
            "challenge.rejected",
            extra={"token_present": bool(x_turnstile_token)},
        )
        raise AuthenticationAppError(
            code="challenge_failed",
            message="Bot verification failed. Please refresh and try again.",
        )
