"""OpenAPI customization.

Documents the two request signals the API relies on, the bot challenge
header and the subscriber cookie, and adds tag descriptions.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import settings

TAGS = [
    {"name": "Tools", "description": "AI tools, limited per visitor per day."},
    {"name": "Extension", "description": "Browser-extension endpoints, limited per installation."},
    {"name": "Results", "description": "Shared result links and the results sitemap."},
    {"name": "Subscription", "description": "Newsletter signup that issues the subscriber cookie."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and the subscriber cookie scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SubscriberCookie",
            {
                "type": "apiKey",
                "in": "cookie",
                "name": settings.app.subscriber_cookie,
                "description": "Present for subscribers; raises the daily tool limit.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS if t["name"] not in existing)

        # The cookie is optional on tool routes: anonymous access stays allowed.
        for path, methods in schema.get("paths", {}).items():
            if not path.startswith("/api/") or path.startswith("/api/extension"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict) and method_obj.get("tags") == ["Tools"]:
                    method_obj["security"] = [{}, {"SubscriberCookie": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
