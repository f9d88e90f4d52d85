from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from deadline.config import settings
from deadline.models.articles import DateWindow, PeriodSearchOutcome, SearchResult
from deadline.pipeline.scraper import ArticleScraper
from deadline.pipeline.windows import plan_windows
from deadline.tools import search_provider, web_utils
from deadline.tools.search_provider import SearchResponse

SearchFn = Callable[..., Awaitable[SearchResponse]]


def filter_results(results: list[SearchResult], seen_links: set[str]) -> list[SearchResult]:
    """Drop duplicates, blocked/paywalled hosts and results without title or snippet.

    ``seen_links`` is updated with every accepted link.
    """
    accepted: list[SearchResult] = []
    for result in results:
        if not result.link or result.link in seen_links:
            continue
        if web_utils.is_blocked(result.link, result.display_link):
            continue
        if web_utils.is_paywalled(result.link, result.display_link):
            continue
        if not result.title.strip() or not result.snippet.strip():
            continue
        seen_links.add(result.link)
        accepted.append(result)
    return accepted


class PeriodSearcher:
    """Chronological search: one query per window, oldest window first.

    Windows run one after another with a short pause in between; the
    priority candidates of each window are scraped concurrently.
    """

    def __init__(
        self,
        *,
        search: SearchFn | None = None,
        scraper: ArticleScraper | None = None,
        max_results: int | None = None,
        max_articles_per_period: int | None = None,
        delay_ms: int | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._search = search or search_provider.search
        self.scraper = scraper or ArticleScraper()
        self.max_results = max_results or settings.max_results_per_period
        self.max_articles_per_period = max_articles_per_period or settings.max_articles_per_period
        self.delay_ms = settings.period_delay_ms if delay_ms is None else delay_ms
        self._sleep = sleep

    async def search_window(self, query: str, window: DateWindow) -> list[SearchResult]:
        """Provider results for one window; any failure counts as zero results."""
        try:
            response = await self._search(query, max_results=self.max_results, window=window)
        except Exception as e:
            logger.warning(f"Search failed for window '{window.label}': {e}")
            return []
        if response.fallback_from:
            logger.info(
                f"Window '{window.label}' served by {response.provider} "
                f"(fallback from {response.fallback_from}: {response.fallback_reason})"
            )
        return list(response.results)

    async def run(self, query: str, windows: list[DateWindow] | None = None) -> PeriodSearchOutcome:
        windows = windows if windows is not None else plan_windows()
        outcome = PeriodSearchOutcome()
        seen_links: set[str] = set()

        for index, window in enumerate(windows):
            results = await self.search_window(query, window)
            accepted = filter_results(results, seen_links)
            outcome.results.extend(accepted)

            priority = accepted[: self.max_articles_per_period]
            articles = await self.scraper.scrape_all(priority, query, window.label)
            outcome.articles.extend(articles)
            logger.info(
                f"{window.label}: {len(results)} results, {len(accepted)} accepted, "
                f"{len(articles)}/{len(priority)} scraped"
            )

            if index < len(windows) - 1 and self.delay_ms > 0:
                await self._sleep(self.delay_ms / 1000)

        window_rank = {window.label: i for i, window in enumerate(windows)}
        outcome.articles.sort(
            key=lambda a: (window_rank.get(a.time_period, len(windows)), -a.relevance_score)
        )
        return outcome
