"""Subscriber upgrade: newsletter signup that raises the daily tool quota."""

from __future__ import annotations

from fastapi import APIRouter, Response

from app.core.config import settings
from app.schemas.subscription import SubscribeRequest, SubscribeResponse
from app.services.subscription import UPGRADE_MESSAGE, subscribe

router = APIRouter(tags=["Subscription"])


@router.post("/api/subscribe-upgrade", response_model=SubscribeResponse)
async def subscribe_upgrade(body: SubscribeRequest, response: Response) -> SubscribeResponse:
    """Set the subscriber cookie for a valid email address."""
    token = subscribe(body.email)
    response.set_cookie(
        key=settings.app.subscriber_cookie,
        value=token,
        max_age=settings.app.subscriber_cookie_max_age,
        path="/",
        secure=settings.app_env == "production",
        # Readable by the site's own scripts.
        httponly=False,
        samesite="lax",
    )
    return SubscribeResponse(success=True, message=UPGRADE_MESSAGE)
