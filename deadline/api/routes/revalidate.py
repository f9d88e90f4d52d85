from __future__ import annotations

from fastapi import APIRouter, Depends

from deadline.api.deps import request_params, require_api_key, require_event_id
from deadline.services import revalidation
from deadline.services.supabase import utc_now_iso

router = APIRouter(prefix="/api/revalidate", tags=["revalidate"])


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


@router.api_route("", methods=["GET", "POST"])
async def revalidate(params: dict = Depends(request_params)):
    require_api_key(params.get("api_key"))

    if _truthy(params.get("revalidate_all")):
        ok = await revalidation.notify([revalidation.ALL_EVENTS_TAG])
        message = "Cache revalidated for all events"
    else:
        event_id = require_event_id(params)
        ok = await revalidation.revalidate_event(event_id)
        message = f"Cache revalidated for event {event_id}"

    return {
        "success": ok,
        "message": message if ok else "Revalidation webhook failed",
        "revalidated": ok,
        "timestamp": utc_now_iso(),
    }
