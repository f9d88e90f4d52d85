"""OpenAI-compatible LLM client factory (Groq by default)."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from deadline.config import settings
from deadline.services import logger as log_service


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class Completion:
    text: str
    usage: Usage = field(default_factory=Usage)
    duration_ms: int = 0


class LLMClient:
    """Single-shot chat completions against an OpenAI-compatible endpoint."""

    def __init__(self, openai_client: Any, *, model: str | None = None):
        self._client = openai_client
        self.model = model or get_model()

    @staticmethod
    def _to_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        caller: str = "llm",
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> Completion:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self._to_messages(system, prompt),
            "temperature": settings.llm_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.llm_max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None) or ""

        raw_usage = getattr(response, "usage", None)
        usage = Usage(
            input_tokens=getattr(raw_usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(raw_usage, "completion_tokens", 0) or 0,
        )
        log_service.log_llm_call(
            model=self.model,
            caller=caller,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            duration_ms=elapsed_ms,
        )
        return Completion(text=text, usage=usage, duration_ms=elapsed_ms)


def get_client() -> LLMClient:
    """Build the LLM client via the OpenAI SDK."""
    from openai import AsyncOpenAI

    base_url = settings.llm_base_url.strip() or "https://api.groq.com/openai/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.llm_api_key,
        base_url=base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )
    return LLMClient(openai_client)


def get_model() -> str:
    """Get the configured model id."""
    return settings.llm_model


_client: LLMClient | None = None


def client() -> LLMClient:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
