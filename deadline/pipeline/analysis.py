"""
Full event analysis: chronological search, scraping, context packing, LLM
extraction and persistence of the EventDetails record.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from deadline.config import settings
from deadline.errors import NotFoundError, UpstreamError, ValidationError
from deadline.models.articles import PeriodSearchOutcome
from deadline.pipeline import context
from deadline.pipeline.extractor import FactExtractor
from deadline.pipeline.period_search import PeriodSearcher
from deadline.pipeline.scraper import MIN_INCLUDED_CHARS
from deadline.services import logger as log_service
from deadline.services import revalidation
from deadline.services.supabase import EventStore, utc_now_iso
from deadline.tools import google_search

ImageSearchFn = Callable[..., Awaitable[list[str]]]
NotifyFn = Callable[[Any], Awaitable[bool]]

SUCCESS_MESSAGE = "Event analyzed chronologically and saved successfully"


@dataclass
class AnalysisResult:
    event: dict[str, Any]
    record: dict[str, Any]
    outcome: PeriodSearchOutcome
    packed: context.PackedContext
    write_mode: str = ""

    def summary(self, event_id: Any) -> dict[str, Any]:
        record = self.record
        sources_analyzed = list(dict.fromkeys(a.source for a in self.outcome.articles))
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "event_id": event_id,
            "event_title": self.event.get("title"),
            "query_used": self.event.get("query"),
            "articles_scraped": len(record["sources"]),
            "images_found": len(record["images"]),
            "sources_analyzed": ", ".join(sources_analyzed),
            "chronological_breakdown": self.outcome.period_breakdown(),
            "analysis_summary": {
                "headline": record["headline"],
                "location": record["location"],
                "accused_individuals_count": len(record["accused"]["individuals"]),
                "accused_organizations_count": len(record["accused"]["organizations"]),
                "victim_individuals_count": len(record["victims"]["individuals"]),
                "victim_groups_count": len(record["victims"]["groups"]),
                "timeline_events": len(record["timeline"]),
                "key_points_count": len(record["details"]["keyPoints"]),
                "total_content_analyzed": sum(len(a.content) for a in self.outcome.articles),
            },
        }


async def _search_images(query: str) -> list[str]:
    return await google_search.search_images(query, max_images=settings.max_images)


class AnalysisPipeline:
    """Runs one synchronous analysis pass for an event.

    Nothing is written unless extraction succeeds. Bumping the event's
    ``last_updated`` and notifying the cache sink are best-effort.
    """

    def __init__(
        self,
        store: EventStore,
        *,
        searcher: PeriodSearcher | None = None,
        extractor: FactExtractor | None = None,
        image_search: ImageSearchFn | None = None,
        notify: NotifyFn | None = None,
    ):
        self.store = store
        self.searcher = searcher or PeriodSearcher()
        self.extractor = extractor or FactExtractor()
        self._image_search = image_search or _search_images
        self._notify = notify or revalidation.revalidate_event

    async def load_event(self, event_id: Any) -> dict[str, Any]:
        event = await self.store.get_event(event_id)
        if not event:
            raise NotFoundError(f"Event {event_id} not found")
        if not str(event.get("query") or "").strip():
            raise ValidationError(f"Event {event_id} has no search query")
        return event

    async def find_images(self, query: str) -> list[str]:
        try:
            return await self._image_search(query)
        except Exception as e:
            logger.warning(f"Image search failed for '{query}': {e}")
            return []

    async def gather(self, query: str) -> PeriodSearchOutcome:
        outcome = await self.searcher.run(query)
        outcome.images = await self.find_images(query)
        return outcome

    async def run(self, event_id: Any) -> AnalysisResult:
        event = await self.load_event(event_id)
        query = str(event["query"]).strip()
        log_service.log_pipeline_step(event_id, "event_loaded", "success", {"query": query})

        outcome = await self.gather(query)
        log_service.log_pipeline_step(
            event_id,
            "search",
            "success",
            {
                "results": len(outcome.results),
                "articles": len(outcome.articles),
                "images": len(outcome.images),
            },
        )
        if not outcome.articles:
            log_service.log_pipeline_step(event_id, "search", "error", {"reason": "no articles"})
            raise UpstreamError("No articles found or scraped")

        packed = context.pack_articles(outcome.articles)
        snippets = context.format_snippets(outcome.results)
        extracted = await self.extractor.extract_event_details(query, snippets, packed.text)
        log_service.log_pipeline_step(
            event_id,
            "extraction",
            "success",
            {"packed_chars": packed.total_chars, "packed_articles": len(packed.included)},
        )

        record = {
            **extracted,
            "sources": [
                a.url for a in outcome.articles if a.url and len(a.content) > MIN_INCLUDED_CHARS
            ],
            "images": list(outcome.images),
        }
        write_mode = await self.store.upsert_event_details(event_id, record)
        log_service.log_pipeline_step(event_id, "persist", "success", {"mode": write_mode})

        try:
            await self.store.set_last_updated(event_id, utc_now_iso())
        except Exception as e:
            logger.warning(f"Could not bump last_updated for event {event_id}: {e}")

        try:
            await self._notify(event_id)
        except Exception as e:
            logger.warning(f"Revalidation notify failed for event {event_id}: {e}")

        return AnalysisResult(
            event=event,
            record=record,
            outcome=outcome,
            packed=packed,
            write_mode=write_mode,
        )
