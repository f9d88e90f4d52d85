"""
LLM fact extraction: prompt rendering, reply parsing and normalization.

The normalizers are total: any JSON value goes in, a structurally complete
record comes out. Feeding a normalized record back in returns it unchanged.
"""
from __future__ import annotations

import json
from typing import Any

from deadline import llm_client
from deadline.errors import ExtractionError, UpstreamError
from deadline.llm_client import Completion, LLMClient
from deadline.services.prompt_store import render_prompt

MAX_UPDATE_TITLE_CHARS = 100
MAX_UPDATE_DESCRIPTION_CHARS = 1000
MAX_UPDATE_SUMMARY_CHARS = 200


# --- Reply parsing ---


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text[3:]
        if text[:4].lower() == "json":
            text = text[4:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Parse the outermost ``{...}`` span of a model reply."""
    text = strip_code_fences(raw_text or "")
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ExtractionError("No JSON object found in model response")
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON in model response: {e}") from e
    if not isinstance(parsed, dict):
        raise ExtractionError("Model response is not a JSON object")
    return parsed


# --- Normalization ---


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(part for part in (_text(v) for v in value) if part)
    return ""


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _pairs(value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        return []
    pairs = []
    for item in value:
        if not isinstance(item, dict):
            continue
        label, text = _text(item.get("label")), _text(item.get("value"))
        if label or text:
            pairs.append({"label": label, "value": text})
    return pairs


def _party(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    party: dict[str, Any] = {}
    name = item.get("name")
    if isinstance(name, str) and name.strip():
        party["name"] = name.strip()
    party["summary"] = _text(item.get("summary"))
    party["details"] = _pairs(item.get("details"))
    return party


def _parties(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [party for party in map(_party, value) if party is not None]


def _party_groups(value: Any, people_key: str, collective_key: str) -> dict[str, list]:
    # A bare list is read as individuals
    if isinstance(value, list):
        return {people_key: _parties(value), collective_key: []}
    if not isinstance(value, dict):
        return {people_key: [], collective_key: []}
    return {
        people_key: _parties(value.get(people_key)),
        collective_key: _parties(value.get(collective_key)),
    }


def _timeline_event(item: Any) -> dict[str, str] | None:
    if not isinstance(item, dict):
        return None
    return {
        "time": _text(item.get("time")),
        "description": _text(item.get("description")),
        "participants": _text(item.get("participants")),
        "evidence": _text(item.get("evidence")),
    }


def _timeline(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    entries = []
    for item in value:
        if not isinstance(item, dict):
            continue
        events = item.get("events")
        entries.append(
            {
                "date": _text(item.get("date")),
                "context": _text(item.get("context")) or _text(item.get("summary")),
                "events": [
                    event
                    for event in map(_timeline_event, events if isinstance(events, list) else [])
                    if event is not None
                ],
            }
        )
    return entries


def _details(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        return {"overview": value.strip(), "keyPoints": []}
    if not isinstance(value, dict):
        return {"overview": "", "keyPoints": []}
    return {
        "overview": _text(value.get("overview")),
        "keyPoints": _pairs(value.get("keyPoints")),
    }


def normalize_event_details(raw: Any) -> dict[str, Any]:
    """Map any parsed reply onto the canonical EventDetails shape."""
    if not isinstance(raw, dict):
        raw = {}
    raw_details = raw.get("details")
    headline = _text(raw.get("headline"))
    if not headline and isinstance(raw_details, dict):
        headline = _text(raw_details.get("headline"))
    return {
        "headline": headline,
        "location": _text(raw.get("location")),
        "details": _details(raw_details),
        "accused": _party_groups(raw.get("accused"), "individuals", "organizations"),
        "victims": _party_groups(raw.get("victims"), "individuals", "groups"),
        "timeline": _timeline(raw.get("timeline")),
        "sources": _strings(raw.get("sources")),
        "images": _strings(raw.get("images")),
    }


def _score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return min(max(score, 0.0), 10.0)


def normalize_update(item: Any) -> dict[str, Any] | None:
    """One dated update, or ``None`` when date, title or description is missing."""
    if not isinstance(item, dict):
        return None
    date = _text(item.get("date"))
    title = _text(item.get("title"))
    description = _text(item.get("description"))
    if not (date and title and description):
        return None
    return {
        "date": date,
        "title": title[:MAX_UPDATE_TITLE_CHARS],
        "description": description[:MAX_UPDATE_DESCRIPTION_CHARS],
        "relevance_score": _score(item.get("relevance_score")),
        "key_insights": _strings(item.get("key_insights")),
        "summary": _text(item.get("summary"))[:MAX_UPDATE_SUMMARY_CHARS],
        "sources": _strings(item.get("sources")),
    }


def normalize_update_analysis(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        return {"has_new_updates": False, "updates": []}
    items = raw.get("updates") if isinstance(raw.get("updates"), list) else []
    updates = [u for u in map(normalize_update, items) if u is not None]
    if not raw.get("has_new_updates"):
        updates = []
    return {"has_new_updates": bool(updates), "updates": updates}


# --- LLM calls ---


class FactExtractor:
    """Renders the extraction prompts and turns replies into normalized records."""

    def __init__(self, llm: LLMClient | None = None):
        self._llm = llm

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = llm_client.client()
        return self._llm

    async def _complete(self, prompt: str, **kwargs: Any) -> Completion:
        try:
            return await self.llm.complete(prompt, **kwargs)
        except Exception as e:
            raise UpstreamError(f"LLM request failed: {e}") from e

    async def extract_event_details(self, query: str, snippets: str, articles: str) -> dict[str, Any]:
        prompt = render_prompt("analysis.user", query=query, snippets=snippets, articles=articles)
        completion = await self._complete(
            prompt,
            system=render_prompt("analysis.system"),
            caller="fact_extractor",
        )
        return normalize_event_details(extract_json_object(completion.text))

    async def extract_updates(self, query: str, last_update: str, results: str) -> dict[str, Any]:
        prompt = render_prompt("updates.user", query=query, last_update=last_update, results=results)
        completion = await self._complete(prompt, caller="delta_updates", json_mode=True)
        return normalize_update_analysis(extract_json_object(completion.text))
