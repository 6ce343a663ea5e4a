"""Product insight, COA analysis and affiliate links for the browser extension.

Insights for a product are the same for every user unless preferences are
supplied, so non-personalized insights go through the 24h insight cache.
Personalized insights (which carry a match score) are never cached.

Generation is tiered. Insights run on the first-tier model and fall back to
the second tier when it fails; the response's ``_tier`` says which one
answered. COA review and page parsing only run on the second tier.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import AppError, ConfigurationAppError
from app.schemas.extension import CoaRequest, ProductData, UserPreferences
from app.services.insight_cache import InsightCache

logger = logging.getLogger(__name__)

WEEDMAPS_SEARCH_URL = "https://weedmaps.com/search"
LEAFLY_SEARCH_URL = "https://www.leafly.com/search"
AFFILIATE_REF = "kushsavvy"

PAGE_TEXT_LIMIT = 2000
# Product fields the page parser may fill in, by wire name.
PAGE_PARSED_FIELDS = ("name", "category", "strainType", "thc", "cbd", "brand", "terpenes")

INSIGHT_SYSTEM_PROMPT = """You are KushSavvy's cannabis product analyst for adult consumers in legal markets.
- Never make medical claims or diagnose conditions
- Always recommend starting low for beginners
- Flag suspicious potency numbers
- Dosing guidance must be product-type appropriate
- Return ONLY valid JSON"""

COA_SYSTEM_PROMPT = """You review cannabis Certificates of Analysis for consumers.
Be conservative: a wrong safety reading can mislead someone. Return ONLY valid JSON."""


def build_insight_prompt(product: ProductData, preferences: UserPreferences | None) -> str:
    lines = [
        "Analyze this cannabis product and return insights.",
        f"Product: {product.name}",
        f"Category: {product.category}",
    ]
    for label, value in (
        ("Strain type", product.strain_type),
        ("THC", product.thc),
        ("CBD", product.cbd),
        ("Brand", product.brand),
    ):
        if value:
            lines.append(f"{label}: {value}")
    lines.append("Terpenes listed: " + (", ".join(product.terpenes) or "not listed"))
    if product.raw_description:
        lines.append(f"Product description: {product.raw_description[:500]}")

    if preferences:
        lines += [
            "User profile:",
            f"- Experience: {preferences.experience_level}",
            f"- Desired effects: {', '.join(preferences.desired_effects)}",
            f"- THC preference: {preferences.thc_sensitivity}",
            f"- Product types used: {', '.join(preferences.product_types)}",
        ]

    match_score = (
        '{"score": 0-100, "reasons": [string], "mismatches": [string]}' if preferences else "null"
    )
    lines.append(
        "Return JSON with keys: effects {summary, primary, bestFor, caution}, "
        "terpenes {dominant [{name, aroma, effect, percentage}], explanation}, "
        "dosing {level, beginner, regular, experienced}, "
        f"matchScore ({match_score}), similar [{{name, comparison}}] (exactly 3), "
        "trustSignal {status: verified|caution|warning, message, details}."
    )
    return "\n".join(lines)


def build_coa_prompt(request: CoaRequest) -> str:
    source = (
        f"COA content:\n{request.coa_text[:4000]}"
        if request.coa_text
        else f"COA URL: {request.coa_url}\n(Analyze based on URL pattern and any available metadata)"
    )
    claim = f"\nLabel THC claim: {request.claimed_thc}" if request.claimed_thc else ""
    return (
        f"Analyze this cannabis Certificate of Analysis.\n\nProduct: {request.product_name}{claim}\n{source}\n\n"
        "Return JSON with keys: labName, labAccredited, testDate, "
        "safetyTests {pesticides, heavyMetals, microbial, solvents, mycotoxins} (pass|fail|not_tested), "
        "potency {thc, thca, cbd, totalThc, matchesLabel, discrepancy}, "
        "terpeneProfile [{name, percentage, aroma, effect}], redFlags [string], summary, grade (A-F)."
    )


def build_page_parse_prompt(page_text: str, product_url: str) -> str:
    return (
        "Extract cannabis product information from this dispensary page text.\n\n"
        f"Page URL: {product_url}\n"
        f"Page text: {page_text[:PAGE_TEXT_LIMIT]}\n\n"
        'Return JSON: {"name": "product name or null", '
        '"category": "flower|vape|edible|concentrate|preroll|tincture|topical|unknown", '
        '"strainType": "sativa|indica|hybrid or null", "thc": "percentage like 22% or null", '
        '"cbd": "percentage or null", "brand": "brand name or null", '
        '"terpenes": ["terpene names if listed"]}'
    )


def weedmaps_link(strain: str, city: str | None = None, state: str | None = None) -> str:
    params = {"q": strain, "ref": AFFILIATE_REF}
    if city:
        params["loc"] = f"{city}, {state or ''}".strip()
    return f"{WEEDMAPS_SEARCH_URL}?{urlencode(params)}"


def leafly_link(strain: str, city: str | None = None, state: str | None = None) -> str:
    params = {"q": strain, "partner": AFFILIATE_REF}
    if city:
        params["location"] = f"{city}, {state}" if state else city
    return f"{LEAFLY_SEARCH_URL}?{urlencode(params)}"


def build_affiliate_links(strain: str, city: str | None = None, state: str | None = None) -> dict[str, str]:
    """Tracked dispensary search links for ``strain``, optionally localized."""
    return {
        "weedmaps": weedmaps_link(strain, city, state),
        "leafly": leafly_link(strain, city, state),
    }


def add_affiliate_links(insight: dict[str, Any]) -> dict[str, Any]:
    similar = insight.get("similar")
    if isinstance(similar, list):
        insight["similar"] = [
            {**item, "affiliateLink": weedmaps_link(str(item.get("name", "")))}
            if isinstance(item, dict)
            else item
            for item in similar
        ]
    return insight


def needs_page_parse(product: ProductData, page_text: str | None) -> bool:
    """Whether a product scraped by the generic extractor should be enriched."""
    return bool(page_text) and product.category == "unknown" and product.source == "generic"


class ExtensionService:
    """Extension features over two generator tiers and the insight cache.

    Args:
        llm: First-tier generator, or None when it is not configured.
        cache: Insight cache (possibly disabled).
        tier2_llm: Second-tier generator, or None when it is not configured.
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None,
        cache: InsightCache,
        tier2_llm: AbstractLLMClient | None = None,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.tier2_llm = tier2_llm

    async def _cache_lookup(self, product: ProductData) -> dict[str, Any] | None:
        try:
            return await self.cache.get_cached(product.name, product.category)
        except AppError as exc:
            logger.warning("insight_cache.lookup_failed", extra={"error_code": exc.code})
            return None

    async def _cache_store(self, product: ProductData, payload: dict[str, Any]) -> None:
        try:
            await self.cache.set_cached(product.name, product.category, payload)
        except AppError as exc:
            logger.warning("insight_cache.store_failed", extra={"error_code": exc.code})

    def _require_tier2(self) -> AbstractLLMClient:
        if self.tier2_llm is None:
            raise ConfigurationAppError(
                code="llm_missing_api_key",
                message="Service temporarily unavailable",
                details={"hint": "Set the LLM_TIER2_API_KEY environment variable"},
            )
        return self.tier2_llm

    async def enrich_from_page(self, product: ProductData, page_text: str) -> ProductData:
        """Fill product fields from raw page text with the second tier.

        Extraction problems leave the product as it was.
        """
        if self.tier2_llm is None:
            logger.debug("insight.page_parse_skipped")
            return product

        try:
            extracted = await self.tier2_llm.generate_json(
                build_page_parse_prompt(page_text, product.product_url or ""),
                max_tokens=500,
            )
        except AppError as exc:
            logger.warning("insight.page_parse_failed", extra={"error_code": exc.code})
            return product

        updates = {name: extracted[name] for name in PAGE_PARSED_FIELDS if extracted.get(name) is not None}
        try:
            enriched = ProductData.model_validate({**product.model_dump(by_alias=True), **updates})
        except ValidationError:
            logger.warning("insight.page_parse_malformed", extra={"fields": sorted(updates)})
            return product

        logger.info("insight.page_parsed", extra={"fields": sorted(updates)})
        return enriched

    async def _generate_insight(self, prompt: str) -> tuple[dict[str, Any], int]:
        if self.llm is not None:
            try:
                insight = await self.llm.generate_json(prompt, system=INSIGHT_SYSTEM_PROMPT, max_tokens=1500)
                return insight, 1
            except AppError as exc:
                if self.tier2_llm is None:
                    raise
                logger.warning("insight.tier1_failed", extra={"error_code": exc.code})

        insight = await self._require_tier2().generate_json(
            prompt,
            system=INSIGHT_SYSTEM_PROMPT,
            max_tokens=1500,
        )
        return insight, 2

    async def product_insight(
        self,
        product: ProductData,
        preferences: UserPreferences | None = None,
        page_text: str | None = None,
    ) -> dict[str, Any]:
        """Insight for ``product``, served from cache when not personalized.

        The cache is keyed by the product as scraped, before any page-text
        enrichment.
        """
        if preferences is None:
            cached = await self._cache_lookup(product)
            if cached is not None:
                return {**cached, "cached": True}

        subject = product
        if needs_page_parse(product, page_text):
            subject = await self.enrich_from_page(product, page_text)

        insight, tier = await self._generate_insight(build_insight_prompt(subject, preferences))
        response = {**add_affiliate_links(insight), "cached": False, "_tier": tier}
        logger.info("insight.generated", extra={"tier": tier, "personalized": preferences is not None})

        if preferences is None:
            await self._cache_store(product, response)

        return response

    async def coa_analysis(self, request: CoaRequest) -> dict[str, Any]:
        """COA review on the second tier.

        Raises:
            ConfigurationAppError: The second tier is not configured.
            LLMAppError: The generator failed.
        """
        return await self._require_tier2().generate_json(
            build_coa_prompt(request),
            system=COA_SYSTEM_PROMPT,
            max_tokens=1500,
        )
