# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from zenpriority.llm.client import OpenRouterLLMClient, friendly_llm_error_message


def _chunk(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def _status_error(cls, code: int):
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    return cls("error", response=httpx.Response(code, request=request), body=None)


class ScriptedCompletions:
    """Stands in for client.chat.completions: per-model chunks or exceptions."""

    def __init__(self, script: dict[str, object]) -> None:
        self.script = script
        self.models: list[str] = []

    def create(self, *, model: str, **kwargs):
        self.models.append(model)
        outcome = self.script[model]
        if isinstance(outcome, Exception):
            raise outcome
        return iter(outcome)


def _client(script: dict[str, object]) -> tuple[OpenRouterLLMClient, ScriptedCompletions]:
    completions = ScriptedCompletions(script)
    fake_sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    settings = SimpleNamespace(llm_models=list(script), extra_headers={"X-Title": "test"})
    return OpenRouterLLMClient(settings, client=fake_sdk), completions


def test_streams_content_chunks() -> None:
    client, _ = _client({"m1": [_chunk("Hello "), _chunk(None), _chunk("world")]})
    assert "".join(client.stream_chat([{"role": "user", "content": "hi"}], "sys")) == "Hello world"


def test_falls_back_on_missing_model_and_rate_limit() -> None:
    client, completions = _client(
        {
            "gone": _status_error(openai.NotFoundError, 404),
            "busy": _status_error(openai.RateLimitError, 429),
            "ok": [_chunk("done")],
        }
    )
    assert "".join(client.stream_chat([], "sys")) == "done"
    assert completions.models == ["gone", "busy", "ok"]

    # The 404 model is skipped on the next call.
    completions.models.clear()
    assert "".join(client.stream_chat([], "sys")) == "done"
    assert completions.models == ["busy", "ok"]


def test_auth_error_fails_fast() -> None:
    client, completions = _client(
        {"m1": _status_error(openai.AuthenticationError, 401), "m2": [_chunk("never")]}
    )
    with pytest.raises(RuntimeError, match="authentication"):
        list(client.stream_chat([], "sys"))
    assert completions.models == ["m1"]


def test_all_models_failing_raises() -> None:
    client, _ = _client({"m1": [_chunk(None)], "m2": _status_error(openai.RateLimitError, 429)})
    with pytest.raises(RuntimeError, match="rate-limited"):
        list(client.stream_chat([], "sys"))


def test_missing_api_key_is_reported() -> None:
    settings = SimpleNamespace(openrouter_api_key=None, openrouter_base_url="https://x", llm_models=["m"])
    with pytest.raises(RuntimeError) as ei:
        OpenRouterLLMClient(settings)
    assert "ZEN_OPENROUTER_API_KEY" in friendly_llm_error_message(ei.value)
