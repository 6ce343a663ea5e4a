"""Shared result lookup and the results sitemap."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from app.api.deps import get_result_store
from app.core.config import settings
from app.schemas.results import SharedResultResponse
from app.services.result_store import ResultStore
from app.services.sitemap import build_results_sitemap, result_path
from app.services.tools import TOOLS

router = APIRouter(tags=["Results"])


def _not_found(tool: str) -> JSONResponse:
    definition = TOOLS[tool]
    return JSONResponse(
        status_code=404,
        content={
            "expired": True,
            "tool": tool,
            "toolName": definition.display_name,
            "toolUrl": definition.path,
            "message": "This result has expired. Shared results are available for 90 days.",
        },
    )


@router.get(
    "/api/results/{tool}/{hash}",
    response_model=SharedResultResponse,
    response_model_by_alias=True,
)
async def get_shared_result(
    tool: str,
    hash: str,
    results: ResultStore = Depends(get_result_store),
):
    """Resolve a shared result link.

    Expired, never-stored and store-disabled lookups all yield the same 404
    "expired" body pointing back at the live tool.
    """
    if tool not in TOOLS:
        return JSONResponse(
            status_code=404,
            content={"error": {"code": "unknown_tool", "message": f"Unknown tool: {tool}"}},
        )

    stored = await results.fetch(tool, hash)
    if stored is None:
        return _not_found(tool)

    return SharedResultResponse(
        tool=tool,
        tool_name=TOOLS[tool].display_name,
        hash=hash,
        share_url=f"{settings.app.site_url.rstrip('/')}{result_path(tool, hash)}",
        result=stored,
    )


@router.get("/results-sitemap.xml", include_in_schema=False)
async def results_sitemap(results: ResultStore = Depends(get_result_store)) -> Response:
    xml = await build_results_sitemap(results, settings.app.site_url)
    return Response(content=xml, media_type="application/xml")
