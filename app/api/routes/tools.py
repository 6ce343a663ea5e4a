"""AI tool endpoints.

Every endpoint runs the same pipeline: bot challenge, general tool quota,
then ``ToolService`` (dedup lookup, generation, sharing).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_tool_service
from app.core.challenge import require_challenge
from app.core.rate_limit import enforce_tool_quota
from app.schemas.quota import RateLimitResult
from app.services.tool_service import ToolService

router = APIRouter(tags=["Tools"], dependencies=[Depends(require_challenge)])

# Public API path -> tool slug
TOOL_ENDPOINTS: dict[str, str] = {
    "/recommend": "strain-recommender",
    "/compare": "strain-compare",
    "/cbd-vs-thc": "cbd-vs-thc",
    "/tolerance-plan": "tolerance-break-planner",
    "/grow-timeline": "grow-timeline",
    "/terpene-guide": "terpene-guide",
}


def _make_endpoint(slug: str):
    async def run_tool(
        payload: dict[str, Any] = Body(..., description="Tool input fields"),
        quota: RateLimitResult = Depends(enforce_tool_quota),
        service: ToolService = Depends(get_tool_service),
    ) -> dict[str, Any]:
        result = await service.run(slug, payload)
        body = result.to_response()
        if not quota.disabled:
            body["remaining"] = quota.remaining
        return body

    run_tool.__name__ = f"run_{slug.replace('-', '_')}"
    run_tool.__doc__ = f"Run the {slug} tool and return its (shareable) result."
    return run_tool


for _path, _slug in TOOL_ENDPOINTS.items():
    router.add_api_route(_path, _make_endpoint(_slug), methods=["POST"], name=_slug)
