from __future__ import annotations

from fastapi import APIRouter, Depends

from deadline.api.deps import (
    get_analysis_pipeline,
    get_delta_pipeline,
    parse_event_id,
    request_params,
    require_api_key,
    require_event_id,
)
from deadline.pipeline.analysis import AnalysisPipeline
from deadline.pipeline.updates import DeltaUpdatePipeline

router = APIRouter(prefix="/api/search", tags=["search"])


@router.api_route("/details", methods=["GET", "POST"])
async def analyze_event(
    params: dict = Depends(request_params),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """Run the full chronological analysis for one event and save it."""
    require_api_key(params.get("api_key"))
    event_id = require_event_id(params)
    result = await pipeline.run(event_id)
    return result.summary(event_id)


@router.api_route("/updates", methods=["GET", "POST"])
async def find_updates(
    params: dict = Depends(request_params),
    pipeline: DeltaUpdatePipeline = Depends(get_delta_pipeline),
):
    """Append dated updates published since the event's last update."""
    require_api_key(params.get("api_key"))
    event_id = parse_event_id(require_event_id(params))
    return await pipeline.run(event_id)
