"""
Delta updates: find coverage published after an event's watermark and
append one EventUpdate row per distinct date.
"""
from __future__ import annotations

import asyncio
import math
import time
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from deadline.config import settings
from deadline.errors import NotFoundError
from deadline.models.articles import SearchResult
from deadline.pipeline.extractor import FactExtractor
from deadline.pipeline.scraper import ArticleScraper
from deadline.services import logger as log_service
from deadline.services import revalidation
from deadline.services.prompt_store import render_prompt
from deadline.services.supabase import EventStore
from deadline.tools import search_provider
from deadline.tools.search_provider import SearchResponse

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
CONTENT_UNAVAILABLE = "Content not available"
DATE_UNAVAILABLE = "Date not available"

NO_NEW_RESULTS_MESSAGE = "No new updates found since last update"
NO_NEW_UPDATES_MESSAGE = "No new updates found after analysis"

SearchFn = Callable[..., Awaitable[SearchResponse]]
NotifyFn = Callable[[Any], Awaitable[bool]]


def parse_published_date(value: str | None, *, now: datetime | None = None) -> datetime | None:
    """Parse an ISO-8601 or RFC 2822 date; future or unreadable dates give None.

    Naive values are read as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if parsed > (now or datetime.now(timezone.utc)):
        return None
    return parsed


def watermark_of(event: dict[str, Any]) -> datetime:
    return parse_published_date(event.get("last_updated")) or EPOCH


def days_since(watermark: datetime, now: datetime) -> int:
    return max(math.ceil((now - watermark) / timedelta(days=1)), 1)


def is_newer(result: SearchResult, watermark: datetime, *, now: datetime | None = None) -> bool:
    published = parse_published_date(result.published_date, now=now)
    return published is not None and published > watermark


def latest_update_date(updates: list[dict[str, Any]]) -> str | None:
    """The raw ``date`` of the newest parseable update."""
    dated = [
        (parsed, update["date"])
        for update in updates
        if (parsed := parse_published_date(update["date"])) is not None
    ]
    if not dated:
        return None
    return max(dated, key=lambda pair: pair[0])[1]


class _Stopwatch:
    def __init__(self):
        self.started = time.monotonic()
        self.timings: dict[str, int] = {}

    def lap(self, name: str, since: float) -> None:
        self.timings[name] = int((time.monotonic() - since) * 1000)

    def total(self) -> None:
        self.lap("total_processing_time", self.started)


class DeltaUpdatePipeline:
    """One delta pass: search once, keep strictly newer results, ask for dated updates."""

    def __init__(
        self,
        store: EventStore,
        *,
        search: SearchFn | None = None,
        scraper: ArticleScraper | None = None,
        extractor: FactExtractor | None = None,
        notify: NotifyFn | None = None,
    ):
        self.store = store
        self._search = search or search_provider.search
        self.scraper = scraper or ArticleScraper()
        self.extractor = extractor or FactExtractor()
        self._notify = notify or revalidation.revalidate_event

    async def search_since(self, query: str, days: int) -> list[SearchResult]:
        try:
            response = await self._search(
                query, max_results=settings.max_results_per_period, days=days
            )
        except Exception as e:
            logger.warning(f"Delta search failed for '{query}': {e}")
            return []
        return list(response.results)

    async def scrape_contents(self, results: list[SearchResult], query: str) -> list[str | None]:
        articles = await asyncio.gather(
            *(self.scraper.scrape(r.link, query) for r in results),
            return_exceptions=True,
        )
        return [
            a.content[: settings.max_chars_per_site]
            if a is not None and not isinstance(a, BaseException)
            else None
            for a in articles
        ]

    @staticmethod
    def format_results(results: list[SearchResult], contents: list[str | None]) -> str:
        blocks = []
        for index, (result, content) in enumerate(zip(results, contents), start=1):
            blocks.append(
                render_prompt(
                    "updates.result",
                    index=index,
                    title=result.title,
                    snippet=result.snippet,
                    link=result.link,
                    published=result.published_date or DATE_UNAVAILABLE,
                    content=content or CONTENT_UNAVAILABLE,
                )
            )
        return "\n\n".join(blocks)

    async def run(self, event_id: int, *, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        clock = _Stopwatch()
        debug: dict[str, Any] = {
            "search_results_count": 0,
            "filtered_results_count": 0,
            "last_updated_date": None,
            "days_since_last_update": 0,
            "has_new_content": False,
        }

        step = time.monotonic()
        event = await self.store.get_event(event_id)
        clock.lap("event_fetch_time", step)
        if not event:
            raise NotFoundError(f"Event {event_id} not found")

        query = str(event.get("query") or "").strip()
        watermark = watermark_of(event)
        days = days_since(watermark, now)
        debug["last_updated_date"] = watermark.isoformat()
        debug["days_since_last_update"] = days

        step = time.monotonic()
        results = await self.search_since(query, days)
        clock.lap("search_time", step)

        fresh = [r for r in results if r.title and r.snippet and is_newer(r, watermark, now=now)]
        debug["search_results_count"] = len(results)
        debug["filtered_results_count"] = len(fresh)
        debug["has_new_content"] = bool(fresh)
        log_service.log_pipeline_step(
            event_id, "delta_search", "success", {"results": len(results), "fresh": len(fresh)}
        )

        if not fresh:
            clock.total()
            return {
                "success": True,
                "message": NO_NEW_RESULTS_MESSAGE,
                "last_updated": watermark.isoformat(),
                "total_search_results": len(results),
                "new_articles_found": 0,
                "debug": {**clock.timings, **debug},
            }

        step = time.monotonic()
        contents = await self.scrape_contents(fresh, query)
        clock.lap("scrape_time", step)

        step = time.monotonic()
        analysis = await self.extractor.extract_updates(
            query, watermark.isoformat(), self.format_results(fresh, contents)
        )
        clock.lap("llm_analysis_time", step)

        if not analysis["has_new_updates"]:
            clock.total()
            return {
                "success": True,
                "message": NO_NEW_UPDATES_MESSAGE,
                "last_updated": watermark.isoformat(),
                "new_articles_processed": len(fresh),
                "debug": {**clock.timings, **debug},
            }

        rows = [
            {
                "event_id": event.get("event_id", event_id),
                "title": update["title"],
                "description": update["description"],
                "update_date": update["date"],
                "relevance_score": update["relevance_score"],
                "sources": update["sources"],
            }
            for update in analysis["updates"]
        ]
        step = time.monotonic()
        await self.store.insert_updates(rows)
        clock.lap("database_insert_time", step)
        log_service.log_pipeline_step(event_id, "delta_persist", "success", {"rows": len(rows)})

        latest = latest_update_date(analysis["updates"])
        latest_parsed = parse_published_date(latest)
        if latest and latest_parsed and latest_parsed > watermark:
            try:
                await self.store.set_last_updated(event_id, latest)
            except Exception as e:
                logger.warning(f"Could not advance watermark for event {event_id}: {e}")

        try:
            await self._notify(event_id)
        except Exception as e:
            logger.warning(f"Revalidation notify failed for event {event_id}: {e}")

        clock.total()
        return {
            "success": True,
            "message": f"{len(rows)} updates created successfully",
            "updates": rows,
            "analysis": analysis,
            "new_articles_processed": len(fresh),
            "total_search_results": len(results),
            "updates_by_date": len(analysis["updates"]),
            "debug": {**clock.timings, **debug},
        }
