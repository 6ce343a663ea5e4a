"""Registry of the AI tools served by the API.

Each tool declares its required input fields, how its generation prompt is
built and how the share metadata of a stored result is derived.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from app.schemas.results import ResultMeta

BRAND = "KushSavvy"

JSON_ONLY = "Return ONLY valid JSON with no additional text."


def _listing(value: Any, default: str) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or default
    return str(value) if value else default


def _first(items: Any, key: str) -> Any:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0].get(key)
    return None


# Prompts ---------------------------------------------------------------------


def recommender_prompt(data: dict[str, Any]) -> str:
    return f"""You are {BRAND}'s strain recommendation engine. Recommend exactly 3 well-known, widely available cannabis strains.

User preferences:
- Desired effects: {_listing(data.get("effects"), "Any")}
- Experience level: {data.get("experience")}
- Consumption method: {data.get("method")}
- Effects to avoid: {_listing(data.get("avoid"), "None specified")}
- Flavor preference: {_listing(data.get("flavor"), "No preference")}

{JSON_ONLY}
{{"recommendations": [{{"name": "string", "type": "Indica | Sativa | Hybrid", "thc_range": "string", "terpenes": ["string"], "effects": ["string"], "best_for": "string", "description": "string", "why_for_you": "string"}}]}}"""


def comparison_prompt(data: dict[str, Any]) -> str:
    return f"""Compare these two cannabis strains for someone deciding between them. Be concise and practical.

Strain 1: {json.dumps(data.get("strain1"))}
Strain 2: {json.dumps(data.get("strain2"))}

Cover who each strain is best for, the key differences in experience, and a clear recommendation for common use cases (relaxation, creativity, pain, sleep, social).
{JSON_ONLY}
{{"summary": "string", "winner_by_use_case": {{"relaxation": "string", "creativity": "string", "pain": "string", "sleep": "string", "social": "string"}}}}"""


def cbd_vs_thc_prompt(data: dict[str, Any]) -> str:
    return f"""You are a cannabinoid education specialist. Help the user decide whether CBD, THC, or a combination fits their needs.

- Primary goal: {data.get("goal")}
- Cannabis experience: {data.get("experience") or "Not specified"}
- Concerns: {_listing(data.get("concerns"), "None specified")}

{JSON_ONLY}
{{"recommendation": "CBD | THC | Both (CBD + THC)", "confidence": "string", "summary": "string", "ratio_suggestion": "string", "start_low_guide": "string", "important_note": "string"}}"""


def tolerance_plan_prompt(data: dict[str, Any]) -> str:
    return f"""Create a personalized cannabis tolerance break plan.

- Current usage: {data.get("usage")}
- Frequency: {data.get("frequency")}
- Desired break length: {data.get("duration")}
- Goal: {data.get("goal") or "Reset tolerance"}

{JSON_ONLY}
{{"plan_title": "string", "overview": "string", "days": [{{"day": "string", "focus": "string", "tips": ["string"]}}], "supplements": ["string"], "expected_results": "string"}}"""


def grow_timeline_prompt(data: dict[str, Any]) -> str:
    return f"""Create a cannabis grow timeline.

- Strain type: {data.get("strain_type")}
- Grow method: {data.get("grow_method")}
- Experience: {data.get("experience") or "Beginner"}
- Environment: {data.get("environment")}

{JSON_ONLY}
{{"title": "string", "total_weeks": "string", "phases": [{{"name": "string", "weeks": "string", "tasks": ["string"]}}], "supplies": ["string"], "pro_tips": ["string"]}}"""


def terpene_guide_prompt(data: dict[str, Any]) -> str:
    return f"""Write a cannabis terpene guide entry for: {data.get("terpene")}

{JSON_ONLY}
{{"name": "string", "aroma": "string", "effects": ["string"], "medical_benefits": ["string"], "strains": ["string"], "also_found_in": ["string"]}}"""


# Share metadata --------------------------------------------------------------


def recommender_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    top = _first(output.get("recommendations"), "name") or "Top Pick"
    effects = data.get("effects")
    effect = effects[0] if isinstance(effects, list) and effects else "your preferences"
    return ResultMeta(
        title=f"{top} - Strain Recommendation | {BRAND}",
        description=f"Personalized cannabis strain recommendation based on {effect}. Top pick: {top}.",
        share_text=f"Just got my personalized strain recommendation from {BRAND} - my top match is {top}!",
    )


def comparison_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    s1 = data.get("strain1") or "Strain 1"
    s2 = data.get("strain2") or "Strain 2"
    return ResultMeta(
        title=f"{s1} vs {s2} - Strain Comparison | {BRAND}",
        description=(
            f"Detailed comparison of {s1} and {s2} including THC content, "
            "terpene profiles, effects, and best use cases."
        ),
        share_text=f"{s1} vs {s2} - which one wins? Check out this comparison on {BRAND}.",
    )


def cbd_vs_thc_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    rec = output.get("recommendation") or "CBD or THC"
    goal = data.get("goal") or "your needs"
    return ResultMeta(
        title=f"{rec} Recommendation for {goal} | {BRAND}",
        description=f"Personalized CBD vs THC recommendation for {goal}. Result: {rec}.",
        share_text=f"Found out whether CBD or THC is better for {goal} on {BRAND} - result: {rec}!",
    )


def tolerance_plan_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    title = output.get("plan_title") or "Tolerance Break Plan"
    return ResultMeta(
        title=f"{title} | {BRAND}",
        description=(
            "Personalized cannabis tolerance break plan with day-by-day guidance, "
            "supplements, and expected results."
        ),
        share_text=f"Just got my custom tolerance break plan from {BRAND} - {title}!",
    )


def grow_timeline_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    title = output.get("title") or "Cannabis Grow Timeline"
    weeks = output.get("total_weeks")
    span = f" ({weeks})" if weeks else ""
    return ResultMeta(
        title=f"{title} | {BRAND}",
        description=f"Complete cannabis grow timeline{span} with phase-by-phase tasks, supplies, and pro tips.",
        share_text=f"Planning my cannabis grow with {BRAND} - {title}!",
    )


def terpene_guide_meta(data: dict[str, Any], output: dict[str, Any]) -> ResultMeta:
    name = output.get("name") or data.get("terpene") or "Terpene"
    return ResultMeta(
        title=f"{name} - Cannabis Terpene Guide | {BRAND}",
        description=(
            f"Everything you need to know about {name}: aroma, effects, "
            "medical benefits, and strains high in this terpene."
        ),
        share_text=f"Learning about {name} on {BRAND} - fascinating terpene!",
    )


# Registry --------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDefinition:
    slug: str
    display_name: str
    required_fields: tuple[str, ...]
    build_prompt: Callable[[dict[str, Any]], str]
    build_meta: Callable[[dict[str, Any], dict[str, Any]], ResultMeta]
    # Input fields forming a commutative pair, for tools deduplicated by pair.
    pair_fields: tuple[str, str] | None = None

    @property
    def path(self) -> str:
        return f"/tools/{self.slug}"


TOOLS: dict[str, ToolDefinition] = {
    tool.slug: tool
    for tool in (
        ToolDefinition(
            slug="strain-recommender",
            display_name="Strain Recommender",
            required_fields=("effects", "experience", "method"),
            build_prompt=recommender_prompt,
            build_meta=recommender_meta,
        ),
        ToolDefinition(
            slug="strain-compare",
            display_name="Strain Comparison",
            required_fields=("strain1", "strain2"),
            build_prompt=comparison_prompt,
            build_meta=comparison_meta,
            pair_fields=("strain1", "strain2"),
        ),
        ToolDefinition(
            slug="cbd-vs-thc",
            display_name="CBD vs THC",
            required_fields=("goal",),
            build_prompt=cbd_vs_thc_prompt,
            build_meta=cbd_vs_thc_meta,
        ),
        ToolDefinition(
            slug="tolerance-break-planner",
            display_name="Tolerance Break Planner",
            required_fields=("usage", "frequency", "duration"),
            build_prompt=tolerance_plan_prompt,
            build_meta=tolerance_plan_meta,
        ),
        ToolDefinition(
            slug="grow-timeline",
            display_name="Grow Timeline",
            required_fields=("strain_type", "grow_method", "environment"),
            build_prompt=grow_timeline_prompt,
            build_meta=grow_timeline_meta,
        ),
        ToolDefinition(
            slug="terpene-guide",
            display_name="Terpene Guide",
            required_fields=("terpene",),
            build_prompt=terpene_guide_prompt,
            build_meta=terpene_guide_meta,
        ),
    )
}

SHAREABLE_TOOLS: tuple[str, ...] = tuple(TOOLS)


def tool_display_name(slug: str) -> str:
    tool = TOOLS.get(slug)
    return tool.display_name if tool else "Tool"
