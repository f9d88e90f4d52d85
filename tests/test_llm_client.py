"""Tests for the OpenAI-compatible LLM client."""
import sys
import types
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from deadline.llm_client import LLMClient, get_client, get_model


def _response(text, prompt_tokens=12, completion_tokens=34):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def _openai(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class TestGetModel:
    def test_get_model_reads_settings(self):
        with patch("deadline.llm_client.settings") as mock_settings:
            mock_settings.llm_model = "llama-3.3-70b-versatile"
            assert get_model() == "llama-3.3-70b-versatile"


class TestGetClient:
    def test_get_client_points_at_configured_base_url(self):
        with patch("deadline.llm_client.settings") as mock_settings:
            mock_settings.llm_api_key = "gsk-test"
            mock_settings.llm_base_url = "https://api.groq.com/openai/v1"
            mock_settings.llm_timeout_seconds = 15.0
            mock_settings.llm_model = "llama-3.3-70b-versatile"

            openai_module = types.ModuleType("openai")
            mock_openai = MagicMock()
            openai_module.AsyncOpenAI = mock_openai

            with patch.dict(sys.modules, {"openai": openai_module}):
                client = get_client()

            mock_openai.assert_called_once_with(
                api_key="gsk-test",
                base_url="https://api.groq.com/openai/v1",
                timeout=15.0,
                max_retries=0,
            )
            assert client.model == "llama-3.3-70b-versatile"


class TestComplete:
    @pytest.mark.asyncio
    async def test_complete_sends_system_and_user_messages(self):
        create = AsyncMock(return_value=_response('{"ok": true}'))
        client = LLMClient(_openai(create), model="m")

        completion = await client.complete("hello", system="be strict", temperature=0.1, max_tokens=100)

        assert completion.text == '{"ok": true}'
        assert completion.usage.input_tokens == 12
        assert completion.usage.output_tokens == 34
        kwargs = create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "be strict"},
            {"role": "user", "content": "hello"},
        ]
        assert kwargs["max_tokens"] == 100
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_json_mode_requests_json_object(self):
        create = AsyncMock(return_value=_response("{}"))
        await LLMClient(_openai(create), model="m").complete("hi", json_mode=True)
        assert create.call_args.kwargs["response_format"] == {"type": "json_object"}
        assert create.call_args.kwargs["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_empty_choices_give_empty_text(self):
        create = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))
        completion = await LLMClient(_openai(create), model="m").complete("hi")
        assert completion.text == ""
        assert completion.usage.input_tokens == 0

    @pytest.mark.asyncio
    async def test_errors_are_logged_and_reraised(self):
        create = AsyncMock(side_effect=RuntimeError("rate limited"))
        with patch("deadline.llm_client.log_service.log_llm_call") as log_call:
            with pytest.raises(RuntimeError):
                await LLMClient(_openai(create), model="m").complete("hi")
        assert log_call.call_args.kwargs["status"] == "error"

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(503, json={"error": {"message": "service unavailable"}})

        real_async_openai = openai.AsyncOpenAI

        def build(**kwargs):
            transport = httpx.MockTransport(handler)
            return real_async_openai(http_client=httpx.AsyncClient(transport=transport), **kwargs)

        with patch("deadline.llm_client.settings") as mock_settings, patch("openai.AsyncOpenAI", side_effect=build):
            mock_settings.llm_api_key = "gsk-test"
            mock_settings.llm_base_url = "https://api.groq.com/openai/v1"
            mock_settings.llm_timeout_seconds = 15.0
            mock_settings.llm_model = "m"
            mock_settings.llm_temperature = 0.1
            mock_settings.llm_max_tokens = 100
            client = get_client()

            with pytest.raises(openai.APIStatusError):
                await client.complete("hi")

        assert len(requests) == 1
        assert requests[0].url.path == "/openai/v1/chat/completions"
