"""Pydantic schemas for shareable tool results."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResultMeta(BaseModel):
    """Display metadata for a shared result link."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Page / Open Graph title.")
    description: str = Field(..., description="Page / Open Graph description.")
    share_text: str = Field(
        ...,
        alias="shareText",
        description="Suggested text when sharing the link.",
    )


class ResultDraft(BaseModel):
    """A computed tool result before it is persisted."""

    tool: str = Field(..., description="Slug of the tool that produced the result.")
    input: dict[str, Any] = Field(
        default_factory=dict,
        description="Request payload the result answers.",
    )
    output: str = Field(..., description="Serialized result payload.")
    meta: ResultMeta


class StoredResult(ResultDraft):
    """A persisted, immutable tool result."""

    model_config = ConfigDict(populate_by_name=True)

    created_at: datetime = Field(..., alias="createdAt")
    hash: str = Field("", description="Public 8-character identifier.")

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True)


class ComparisonMatch(BaseModel):
    """An existing comparison found through the lookup index."""

    hash: str
    result: StoredResult


class SharedResultResponse(BaseModel):
    """Body of ``GET /api/results/{tool}/{hash}``."""

    model_config = ConfigDict(populate_by_name=True)

    tool: str
    tool_name: str = Field(..., alias="toolName")
    hash: str
    share_url: str = Field(..., alias="shareUrl")
    result: StoredResult
