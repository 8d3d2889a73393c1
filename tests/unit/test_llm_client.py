"""
Tests for the LiteLLM completion client: empty content, retries and error
wrapping. LiteLLM itself is patched out.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from tenacity import wait_none

from core import CompletionError
from utils.llm_client import LLMClient


def _response(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")],
        usage=SimpleNamespace(total_tokens=12),
    )


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Keep tenacity's backoff out of test runtime."""
    monkeypatch.setattr(LLMClient._acompletion.retry, "wait", wait_none())


@pytest.fixture
def client():
    return LLMClient(model="gpt-test")


class TestComplete:

    async def test_returns_content(self, client):
        with patch("utils.llm_client.litellm.acompletion", AsyncMock(return_value=_response("hello"))) as mock:
            reply = await client.complete([{"role": "user", "content": "hi"}])

        assert reply == "hello"
        assert mock.call_args.kwargs["model"] == "gpt-test"
        assert mock.call_args.kwargs["messages"] == [{"role": "user", "content": "hi"}]

    async def test_none_content_becomes_empty_string(self, client):
        with patch("utils.llm_client.litellm.acompletion", AsyncMock(return_value=_response(None))):
            assert await client.complete([{"role": "user", "content": "hi"}]) == ""

    async def test_model_override(self, client):
        with patch("utils.llm_client.litellm.acompletion", AsyncMock(return_value=_response("ok"))) as mock:
            await client.complete([{"role": "user", "content": "hi"}], model="other-model")

        assert mock.call_args.kwargs["model"] == "other-model"

    async def test_transient_failure_is_retried(self, client):
        flaky = AsyncMock(side_effect=[TimeoutError("slow"), _response("made it")])
        with patch("utils.llm_client.litellm.acompletion", flaky):
            reply = await client.complete([{"role": "user", "content": "hi"}])

        assert reply == "made it"
        assert flaky.call_count == 2

    async def test_persistent_failure_raises_completion_error(self, client):
        broken = AsyncMock(side_effect=ConnectionError("down"))
        with patch("utils.llm_client.litellm.acompletion", broken):
            with pytest.raises(CompletionError) as exc_info:
                await client.complete([{"role": "user", "content": "hi"}])

        assert broken.call_count == 3
        assert exc_info.value.context["model"] == "gpt-test"
        assert "down" in exc_info.value.context["details"]
