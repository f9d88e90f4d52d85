"""Downstream cache invalidation by tag."""
from __future__ import annotations

import httpx
from loguru import logger

from deadline.config import settings
from deadline.services import logger as log_service

ALL_EVENTS_TAG = "events"


def event_tags(event_id: int | str) -> list[str]:
    return [f"event-{event_id}", f"event-details-{event_id}", f"event-updates-{event_id}"]


async def notify(tags: list[str], *, webhook_url: str | None = None) -> bool:
    """POST the tags to the revalidation webhook.

    Without a configured webhook the tags are only logged. Returns False on
    any webhook failure; never raises.
    """
    url = settings.revalidate_webhook_url if webhook_url is None else webhook_url
    if not url:
        log_service.log_event("revalidate", "No webhook configured; tags logged only", tags=tags)
        return True
    try:
        async with httpx.AsyncClient(timeout=settings.revalidate_timeout_seconds) as client:
            response = await client.post(
                url,
                json={"tags": tags},
                headers={"x-api-key": settings.api_secret_key},
            )
            response.raise_for_status()
    except Exception as e:
        logger.warning(f"Revalidation webhook failed for {tags}: {e}")
        return False
    log_service.log_event("revalidate", "Tags revalidated", tags=tags)
    return True


async def revalidate_event(event_id: int | str) -> bool:
    return await notify(event_tags(event_id))
