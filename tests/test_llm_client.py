"""Tests for the Anthropic backend and purpose-configured client."""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from marketing_plan.errors import UpstreamError
from marketing_plan.llm.backends import AnthropicBackend
from marketing_plan.llm.client import PURPOSE_CONFIGS, CallPurpose, LLMClient

from conftest import FakeBackend


def anthropic_response(text="{}", block_type="text"):
    block = Mock()
    block.type = block_type
    block.text = text
    response = Mock()
    response.content = [block]
    response.usage = Mock(input_tokens=120, output_tokens=40)
    return response


def mock_client(response=None, error=None):
    client = Mock()
    client.messages.create = AsyncMock(return_value=response, side_effect=error)
    client.close = AsyncMock()
    return client


async def test_backend_returns_text_and_usage():
    client = mock_client(anthropic_response('{"ok": true}'))
    backend = AnthropicBackend(api_key="test-key", model_id="claude-test", client=client)

    result = await backend.complete("hello", max_tokens=100, temperature=0.2, label="t")

    assert result.content == '{"ok": true}'
    assert result.model_id == "claude-test"
    assert (result.input_tokens, result.output_tokens) == (120, 40)
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 100
    assert kwargs["messages"] == [{"role": "user", "content": "hello"}]


async def test_backend_without_key_fails_on_call():
    backend = AnthropicBackend(api_key=None, model_id="claude-test")
    with pytest.raises(UpstreamError, match="ANTHROPIC_API_KEY"):
        await backend.complete("hello", max_tokens=10, temperature=0.0)


async def test_non_text_content_is_upstream_error():
    client = mock_client(anthropic_response(block_type="tool_use"))
    backend = AnthropicBackend(api_key="k", model_id="m", client=client)
    with pytest.raises(UpstreamError, match="Unexpected response format"):
        await backend.complete("hello", max_tokens=10, temperature=0.0)


async def test_empty_content_is_upstream_error():
    response = anthropic_response()
    response.content = []
    backend = AnthropicBackend(api_key="k", model_id="m", client=mock_client(response))
    with pytest.raises(UpstreamError, match="Empty response"):
        await backend.complete("hello", max_tokens=10, temperature=0.0)


async def test_transport_error_is_upstream_error():
    client = mock_client(error=httpx.ConnectError("connection reset"))
    backend = AnthropicBackend(api_key="k", model_id="m", client=client)
    with pytest.raises(UpstreamError) as exc_info:
        await backend.complete("hello", max_tokens=10, temperature=0.0)
    assert "connection reset" in exc_info.value.details


@pytest.mark.parametrize("purpose", list(CallPurpose))
async def test_client_applies_purpose_config(purpose):
    backend = FakeBackend(["raw text"])
    client = LLMClient(backend)

    text = await client.complete("prompt", purpose)

    assert text == "raw text"
    call = backend.calls[0]
    assert call["max_tokens"] == PURPOSE_CONFIGS[purpose]["max_tokens"]
    assert call["temperature"] == PURPOSE_CONFIGS[purpose]["temperature"]
    assert call["label"] == purpose.value


def test_client_exposes_model_id():
    assert LLMClient(FakeBackend(["x"], model_id="claude-x")).model_id == "claude-x"
