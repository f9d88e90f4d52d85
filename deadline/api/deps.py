from __future__ import annotations

import json
from typing import Any

from fastapi import Depends, Request

from deadline.config import settings
from deadline.errors import AuthError, ValidationError
from deadline.pipeline.analysis import AnalysisPipeline
from deadline.pipeline.updates import DeltaUpdatePipeline
from deadline.services import supabase as db


async def request_params(request: Request) -> dict[str, Any]:
    """Query string, then JSON body (POST), then the ``x-api-key`` header."""
    params: dict[str, Any] = dict(request.query_params)
    if request.method == "POST":
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValidationError("Request body must be JSON") from e
            if isinstance(body, dict):
                params.update({k: v for k, v in body.items() if v is not None})
    header_key = request.headers.get("x-api-key")
    if header_key and not params.get("api_key"):
        params["api_key"] = header_key
    return params


def require_api_key(api_key: Any) -> None:
    expected = settings.api_secret_key
    if not expected or not isinstance(api_key, str) or api_key != expected:
        raise AuthError("Invalid or missing API key")


def require_event_id(params: dict[str, Any]) -> Any:
    event_id = params.get("event_id")
    if event_id is None or str(event_id).strip() == "":
        raise ValidationError("Event ID is required")
    return event_id


def parse_event_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Event ID must be a valid integer")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError("Event ID must be a valid integer") from e


def get_store() -> db.EventStore:
    return db.store()


def get_analysis_pipeline(store: db.EventStore = Depends(get_store)) -> AnalysisPipeline:
    return AnalysisPipeline(store)


def get_delta_pipeline(store: db.EventStore = Depends(get_store)) -> DeltaUpdatePipeline:
    return DeltaUpdatePipeline(store)
