"""Schemas for the subscriber upgrade."""

from __future__ import annotations

from pydantic import BaseModel


class SubscribeRequest(BaseModel):
    # Presence and shape are checked in app.services.subscription.
    email: str | None = None


class SubscribeResponse(BaseModel):
    success: bool
    message: str
