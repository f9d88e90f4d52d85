from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from deadline.api.deps import get_store, request_params, require_api_key, require_event_id
from deadline.config import settings
from deadline.errors import NotFoundError, StoreError, ValidationError
from deadline.pipeline.scraper import fetch_page
from deadline.services.supabase import EventStore
from deadline.tools import content_extractor, web_utils

router = APIRouter(prefix="/api/get", tags=["get"])

TITLE_CACHE_CONTROL = "public, s-maxage=86400, stale-while-revalidate=86400"


@router.get("/events")
async def list_events(store: EventStore = Depends(get_store)):
    """All events, most recently updated first."""
    events = await store.list_events()
    return JSONResponse({"events": events}, headers={"Cache-Control": "no-store"})


@router.get("/details")
async def get_details(params: dict = Depends(request_params), store: EventStore = Depends(get_store)):
    require_api_key(params.get("api_key"))
    event_id = require_event_id(params)
    details = await store.get_event_details(event_id)
    if not details:
        raise NotFoundError(f"No details stored for event {event_id}")
    return {"success": True, "data": details}


@router.get("/updates")
async def get_updates(params: dict = Depends(request_params), store: EventStore = Depends(get_store)):
    """Updates for an event (by id or details slug), newest first.

    Store failures and unknown slugs return an empty list.
    """
    require_api_key(params.get("api_key"))
    event_id = params.get("event_id")
    slug = params.get("slug")
    if not event_id and not slug:
        raise ValidationError("Either event_id or slug parameter is required")

    empty = {"success": True, "data": [], "count": 0}
    try:
        if not event_id:
            event_id = await store.find_event_id_by_slug(slug)
            if event_id is None:
                return empty
        rows, count = await store.list_updates(event_id)
    except StoreError as e:
        logger.warning(f"Update fetch degraded to empty result: {e}")
        return empty
    return {"success": True, "data": rows, "count": count}


@router.get("/title")
async def get_title(url: str = ""):
    """Page title for a link preview, falling back to the domain name."""
    if not url:
        raise ValidationError("URL parameter is required")

    title = ""
    if web_utils.is_valid_url(url):
        try:
            page = await fetch_page(url, timeout=settings.title_timeout_seconds)
            if 200 <= page.status_code < 300:
                title = content_extractor.extract_page_title(page.text)
        except Exception as e:
            logger.warning(f"Title fetch failed for {url}: {e}")

    return JSONResponse(
        {"title": title or web_utils.fallback_title(url)},
        headers={"Cache-Control": TITLE_CACHE_CONTROL},
    )
