"""Sitemap feed of shared result pages."""

from __future__ import annotations

import logging
from xml.sax.saxutils import escape

from app.services.result_store import DEFAULT_LIST_LIMIT, ResultStore
from app.services.tools import SHAREABLE_TOOLS

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


def result_path(tool: str, hash_: str) -> str:
    """Public path of a shared result page."""
    return f"/tools/{tool}/r/{hash_}"


async def collect_result_urls(
    result_store: ResultStore,
    base_url: str,
    *,
    per_tool_limit: int = DEFAULT_LIST_LIMIT,
) -> list[str]:
    base = base_url.rstrip("/")
    urls: list[str] = []
    for tool in SHAREABLE_TOOLS:
        hashes = await result_store.list_keys(tool, per_tool_limit)
        urls.extend(f"{base}{result_path(tool, h)}" for h in hashes)
    logger.info("sitemap.collected", extra={"url_count": len(urls)})
    return urls


async def build_results_sitemap(
    result_store: ResultStore,
    base_url: str,
    *,
    per_tool_limit: int = DEFAULT_LIST_LIMIT,
) -> str:
    """Render every enumerable shared result as a sitemap ``<urlset>``."""
    urls = await collect_result_urls(result_store, base_url, per_tool_limit=per_tool_limit)
    entries = "\n".join(
        f"  <url><loc>{escape(url)}</loc>"
        "<changefreq>never</changefreq><priority>0.4</priority></url>"
        for url in urls
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        f"{entries}\n"
        "</urlset>"
    )
