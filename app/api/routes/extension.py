"""Browser-extension endpoints. Generation is limited per installation id."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_extension_service
from app.core.errors import ValidationAppError
from app.core.rate_limit import enforce_quota, get_rate_limiter
from app.schemas.extension import CoaRequest, InsightRequest
from app.schemas.quota import QuotaClass, installation_identity
from app.services.extension_service import ExtensionService, build_affiliate_links
from app.services.rate_limiter import RateLimiter

router = APIRouter(prefix="/api/extension", tags=["Extension"])


@router.post("/insights")
async def product_insights(
    body: InsightRequest,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
    service: ExtensionService = Depends(get_extension_service),
) -> dict[str, Any]:
    """Effects, terpenes, dosing and trust signal for a scraped product."""
    await enforce_quota(
        limiter,
        installation_identity(body.installation_id),
        QuotaClass.INSIGHT,
        response,
    )
    return await service.product_insight(body.product, body.preferences, body.page_text)


@router.post("/coa")
async def coa_analysis(
    body: CoaRequest,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
    service: ExtensionService = Depends(get_extension_service),
) -> dict[str, Any]:
    """Plain-language review of a Certificate of Analysis."""
    await enforce_quota(
        limiter,
        installation_identity(body.installation_id),
        QuotaClass.COA,
        response,
    )
    return await service.coa_analysis(body)


@router.get("/affiliates")
async def affiliate_links(
    strain: str | None = Query(None, description="Strain to search for"),
    city: str | None = Query(None),
    state: str | None = Query(None),
) -> dict[str, str]:
    """Tracked Weedmaps and Leafly search links for a strain."""
    if not strain:
        raise ValidationAppError(code="missing_param", message="Missing required param: strain")
    return build_affiliate_links(strain, city, state)
