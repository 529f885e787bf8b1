"""Tests for the litellm-backed adapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from codeforge.catalog import ModelDescriptor, ProviderDescriptor
from codeforge.errors import RequestFailedError, ResponseParseError
from codeforge.llm.litellm_provider import LiteLLMAdapter
from codeforge.llm.provider import GenerationOptions


def _completion(content, total_tokens=100):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class _FakeStream:
    def __init__(self, parts):
        self.parts = parts
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for part in self.parts:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=part))])

    async def aclose(self):
        self.closed = True


@pytest.fixture
def gemini():
    descriptor = ProviderDescriptor(
        id="google",
        name="Google AI",
        route_prefix="gemini",
        models=(ModelDescriptor(id="gemini-1.5-pro", name="Gemini 1.5 Pro"),),
    )
    return LiteLLMAdapter(descriptor, "g-key", timeout=30.0)


def test_route_adds_prefix_once(gemini):
    assert gemini.route("gemini-1.5-pro") == "gemini/gemini-1.5-pro"
    assert gemini.route("gemini/gemini-1.5-pro") == "gemini/gemini-1.5-pro"


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_generate_builds_completion_call(mock_acompletion, gemini):
    mock_acompletion.return_value = _completion("export const A = 1;")

    response = await gemini.generate(
        "Build A", GenerationOptions(system="Be brief", temperature=0.2, max_output_tokens=500)
    )

    assert response.content == "export const A = 1;"
    assert response.model == "gemini-1.5-pro"
    assert response.provider_id == "google"
    assert response.tokens_used == 100

    kwargs = mock_acompletion.call_args.kwargs
    assert kwargs["model"] == "gemini/gemini-1.5-pro"
    assert kwargs["api_key"] == "g-key"
    assert kwargs["max_retries"] == 0
    assert kwargs["timeout"] == 30.0
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 500
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Build A"},
    ]
    assert "api_base" not in kwargs


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_custom_provider_sends_base_url(mock_acompletion):
    descriptor = ProviderDescriptor(
        id="custom-abc",
        name="Local",
        base_url="http://localhost:8000/v1",
        route_prefix="openai",
        custom=True,
        models=(ModelDescriptor(id="coder", name="Coder"),),
    )
    mock_acompletion.return_value = _completion("ok")

    await LiteLLMAdapter(descriptor, "sk").generate("hi", GenerationOptions(timeout=5.0))

    kwargs = mock_acompletion.call_args.kwargs
    assert kwargs["api_base"] == "http://localhost:8000/v1"
    assert kwargs["model"] == "openai/coder"
    assert kwargs["timeout"] == 5.0


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_missing_content_is_parse_error(mock_acompletion, gemini):
    mock_acompletion.return_value = _completion(None)

    with pytest.raises(ResponseParseError):
        await gemini.generate("hi")


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_malformed_payload_is_parse_error(mock_acompletion, gemini):
    mock_acompletion.return_value = SimpleNamespace(choices=[])

    with pytest.raises(ResponseParseError, match="Malformed response"):
        await gemini.generate("hi")


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_authentication_error_is_mapped(mock_acompletion, gemini):
    mock_acompletion.side_effect = litellm.AuthenticationError(
        message="invalid key", llm_provider="gemini", model="gemini-1.5-pro"
    )

    with pytest.raises(RequestFailedError, match="authentication failed") as exc_info:
        await gemini.generate("hi")

    assert exc_info.value.status_code == 401
    assert exc_info.value.provider_id == "google"


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_rate_limit_is_mapped(mock_acompletion, gemini):
    mock_acompletion.side_effect = litellm.RateLimitError(
        message="slow down", llm_provider="gemini", model="gemini-1.5-pro"
    )

    with pytest.raises(RequestFailedError, match="Rate limit") as exc_info:
        await gemini.generate("hi")

    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_unknown_errors_become_request_failed(mock_acompletion, gemini):
    mock_acompletion.side_effect = ConnectionError("connection reset")

    with pytest.raises(RequestFailedError, match="connection reset"):
        await gemini.generate("hi")


@pytest.mark.asyncio
@patch("codeforge.llm.litellm_provider.litellm.acompletion", new_callable=AsyncMock)
async def test_stream_yields_fragments_then_done(mock_acompletion, gemini):
    fake_stream = _FakeStream(["export ", None, "const A = 1;"])
    mock_acompletion.return_value = fake_stream

    chunks = [chunk async for chunk in gemini.stream("Build A")]

    assert [c.content for c in chunks] == ["export ", "const A = 1;", ""]
    assert chunks[-1].done is True
    assert mock_acompletion.call_args.kwargs["stream"] is True
    assert fake_stream.closed is True
