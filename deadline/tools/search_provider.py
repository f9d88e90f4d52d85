from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from loguru import logger

from deadline.config import settings
from deadline.models.articles import DateWindow, SearchResult
from deadline.tools import google_search, tavily_search

PROVIDERS: dict[str, ModuleType] = {
    "google": google_search,
    "tavily": tavily_search,
}


@dataclass
class SearchResponse:
    results: list[SearchResult]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


async def search(
    query: str,
    *,
    max_results: int = 10,
    window: DateWindow | None = None,
    days: int | None = None,
) -> SearchResponse:
    """Search with the configured provider; Google may fall back to Tavily."""
    provider = settings.search_provider.lower().strip()
    if provider not in PROVIDERS:
        raise ValueError(f"Unsupported SEARCH_PROVIDER: {settings.search_provider}")

    try:
        results = await PROVIDERS[provider].search(
            query, max_results=max_results, window=window, days=days
        )
        return SearchResponse(results=results, provider=provider)
    except Exception as e:
        if provider != "google" or not settings.search_fallback_to_tavily:
            raise
        logger.warning(f"Google search failed, falling back to Tavily: {e}")
        results = await tavily_search.search(query, max_results=max_results, window=window, days=days)
        return SearchResponse(
            results=results,
            provider="tavily",
            fallback_from="google",
            fallback_reason=str(e),
        )
