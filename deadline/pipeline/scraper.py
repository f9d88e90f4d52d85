from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from loguru import logger

from deadline.config import settings
from deadline.models.articles import ScrapedArticle, SearchResult
from deadline.tools import content_extractor, web_utils

MIN_HTML_CHARS = 200
MIN_CONTENT_CHARS = 100
MIN_INCLUDED_CHARS = 150
MIN_TERM_LENGTH = 3


@dataclass(slots=True)
class FetchedPage:
    url: str
    status_code: int
    content_type: str
    text: str


Fetcher = Callable[[str], Awaitable[FetchedPage]]


async def fetch_page(
    url: str,
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchedPage:
    """GET a page the way a desktop browser would.

    The body is only downloaded for 2xx HTML responses; anything else comes
    back with empty ``text``.
    """
    async with httpx.AsyncClient(
        timeout=timeout or settings.scrape_timeout_seconds,
        follow_redirects=True,
        headers=web_utils.BROWSER_HEADERS,
        transport=transport,
    ) as client:
        async with client.stream("GET", url) as response:
            content_type = response.headers.get("content-type", "")
            text = ""
            if response.is_success and "text/html" in content_type.lower():
                await response.aread()
                text = response.text
            return FetchedPage(
                url=str(response.url),
                status_code=response.status_code,
                content_type=content_type,
                text=text,
            )


def relevance_score(content: str, query: str) -> int:
    """Occurrences of each query term (longer than 3 chars) plus a length bonus."""
    terms = [term for term in query.lower().split() if len(term) > MIN_TERM_LENGTH]
    lowered = content.lower()
    score = sum(lowered.count(term) for term in terms)
    if len(content) > 1000:
        score += 2
    if len(content) > 2000:
        score += 3
    return score


class ArticleScraper:
    """Fetches candidate URLs and turns them into scored ScrapedArticles.

    Failures are per-article: a timeout, bad status, non-HTML body or parse
    error yields ``None`` for that URL and nothing else.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        *,
        timeout: float | None = None,
        extract_in_thread: bool = True,
    ):
        self._fetcher = fetcher or fetch_page
        self.timeout = timeout or settings.scrape_timeout_seconds
        self.extract_in_thread = extract_in_thread

    async def scrape(self, url: str, query: str, time_period: str = "") -> ScrapedArticle | None:
        try:
            # Whole-request deadline; httpx timeouts only bound each phase
            page = await asyncio.wait_for(self._fetcher(url), timeout=self.timeout)
        except Exception as e:
            logger.warning(f"Scrape failed for {url}: {e}")
            return None

        if not 200 <= page.status_code < 300:
            logger.debug(f"Skipping {url}: HTTP {page.status_code}")
            return None
        if "text/html" not in page.content_type.lower():
            logger.debug(f"Skipping {url}: content type {page.content_type!r}")
            return None
        if not page.text or len(page.text) < MIN_HTML_CHARS:
            return None

        try:
            if self.extract_in_thread:
                extracted = await asyncio.to_thread(content_extractor.extract_main_content, page.text)
            else:
                extracted = content_extractor.extract_main_content(page.text)
        except Exception as e:
            logger.warning(f"Content extraction failed for {url}: {e}")
            return None

        if len(extracted.text) < MIN_CONTENT_CHARS:
            return None

        return ScrapedArticle(
            url=url,
            title=extracted.title,
            content=extracted.text,
            source=web_utils.extract_domain(url),
            relevance_score=relevance_score(extracted.text, query),
            time_period=time_period,
        )

    async def scrape_all(
        self,
        candidates: list[SearchResult],
        query: str,
        time_period: str = "",
    ) -> list[ScrapedArticle]:
        """Scrape every candidate concurrently; keep the ones that succeeded."""
        outcomes = await asyncio.gather(
            *(self.scrape(c.link, query, time_period) for c in candidates),
            return_exceptions=True,
        )
        articles: list[ScrapedArticle] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException) or outcome is None:
                continue
            if len(outcome.content) > MIN_INCLUDED_CHARS:
                articles.append(outcome)
        return articles
