from __future__ import annotations

import json
from typing import Any

import httpx

from deadline.config import settings
from deadline.errors import UpstreamError
from deadline.models.articles import DateWindow, SearchResult
from deadline.tools import web_utils

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

# Checked in order, first present wins
METATAG_DATE_KEYS = (
    "article:published_time",
    "og:updated_time",
    "article:modified_time",
    "pubdate",
    "date",
)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")
IMAGE_NOISE = ("favicon", "/logo", "/icon")


def _credentials() -> tuple[str, str]:
    if not settings.google_api_key or not settings.google_search_engine_id:
        raise RuntimeError("GOOGLE_API_KEY / GOOGLE_SEARCH_ENGINE_ID are not configured")
    return settings.google_api_key, settings.google_search_engine_id


def published_date_from_pagemap(item: dict[str, Any]) -> str | None:
    """Best-effort publish date from a CSE item's ``pagemap`` metadata."""
    pagemap = item.get("pagemap")
    if not isinstance(pagemap, dict):
        return None

    metatags = pagemap.get("metatags")
    first_meta = metatags[0] if isinstance(metatags, list) and metatags else {}
    if isinstance(first_meta, dict):
        for key in METATAG_DATE_KEYS:
            value = first_meta.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    for section in ("newsarticle", "article"):
        entries = pagemap.get(section)
        if isinstance(entries, list) and entries and isinstance(entries[0], dict):
            value = entries[0].get("datepublished")
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _decode_payload(response: httpx.Response) -> dict[str, Any]:
    body = response.text
    if web_utils.looks_like_html(body):
        raise UpstreamError("Search provider returned an HTML page instead of JSON")
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise UpstreamError(f"Search provider returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise UpstreamError("Search provider returned an unexpected payload")
    if payload.get("error"):
        raise UpstreamError(f"Search provider error: {payload['error']}")
    return payload


async def search(
    query: str,
    *,
    max_results: int = 10,
    window: DateWindow | None = None,
    days: int | None = None,
) -> list[SearchResult]:
    """Execute a Google Custom Search query and normalize results."""
    api_key, engine_id = _credentials()

    params: dict[str, Any] = {
        "key": api_key,
        "cx": engine_id,
        "q": query,
        "num": min(max_results, 10),
        # date:r:A:B restricts to the window, plain "date" orders newest first
        "sort": window.date_restrict if window else "date",
    }
    if days:
        params["dateRestrict"] = f"d{max(int(days), 1)}"

    async with httpx.AsyncClient(timeout=settings.search_timeout_seconds) as client:
        response = await client.get(
            GOOGLE_SEARCH_URL,
            params=params,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        payload = _decode_payload(response)

    items = payload.get("items") or []
    results: list[SearchResult] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        results.append(
            SearchResult(
                title=str(item.get("title") or ""),
                link=str(item.get("link") or ""),
                snippet=str(item.get("snippet") or ""),
                display_link=str(item.get("displayLink") or ""),
                published_date=published_date_from_pagemap(item),
            )
        )
    return results


def _plausible_image(link: str) -> bool:
    lowered = link.lower()
    if any(noise in lowered for noise in IMAGE_NOISE):
        return False
    return any(ext in lowered for ext in IMAGE_EXTENSIONS) or "image" in lowered


async def search_images(query: str, *, max_images: int = 8) -> list[str]:
    """Image URLs for the query, filtered to likely photos."""
    api_key, engine_id = _credentials()

    params: dict[str, Any] = {
        "key": api_key,
        "cx": engine_id,
        "q": query,
        "searchType": "image",
        "num": 10,
        "safe": "active",
        "imgSize": "medium",
    }
    async with httpx.AsyncClient(timeout=settings.image_search_timeout_seconds) as client:
        response = await client.get(
            GOOGLE_SEARCH_URL,
            params=params,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        payload = _decode_payload(response)

    links = [
        item.get("link")
        for item in payload.get("items") or []
        if isinstance(item, dict) and isinstance(item.get("link"), str)
    ]
    return [link for link in links if _plausible_image(link)][:max_images]
