from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from deadline.config import settings
from deadline.models.articles import DateWindow, SearchResult
from deadline.tools import web_utils


async def search(
    query: str,
    *,
    max_results: int = 10,
    window: DateWindow | None = None,
    days: int | None = None,
) -> list[SearchResult]:
    """Execute a Tavily news search and map it onto SearchResult."""
    if not settings.tavily_api_key:
        raise RuntimeError("TAVILY_API_KEY is not configured")

    client = AsyncTavilyClient(api_key=settings.tavily_api_key)

    kwargs: dict[str, Any] = {
        "query": query,
        "search_depth": "advanced",
        "max_results": max_results,
        "topic": "news",
        "timeout": settings.search_timeout_seconds,
    }
    if window:
        kwargs["start_date"] = window.start.isoformat()
        kwargs["end_date"] = window.end.isoformat()
    if days:
        kwargs["days"] = max(int(days), 1)

    response = await client.search(**kwargs)

    results: list[SearchResult] = []
    for r in response.get("results", []):
        url = r.get("url", "")
        results.append(
            SearchResult(
                title=r.get("title", ""),
                link=url,
                snippet=r.get("content", ""),
                display_link=web_utils.extract_domain(url),
                published_date=r.get("published_date") or None,
            )
        )
    return results
