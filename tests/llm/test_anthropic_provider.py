"""Tests for the LangChain-backed Anthropic adapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk

from codeforge.catalog import default_catalog
from codeforge.errors import RequestFailedError, ResponseParseError
from codeforge.llm.anthropic_provider import AnthropicAdapter
from codeforge.llm.factory import create_adapter
from codeforge.llm.litellm_provider import LiteLLMAdapter
from codeforge.llm.provider import GenerationOptions


@pytest.fixture
def adapter():
    return AnthropicAdapter(default_catalog().get_provider("anthropic"), "sk-ant-test", timeout=20.0)


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_generate_with_system_prompt(mock_chat_cls, adapter):
    mock_client = MagicMock()
    mock_client.ainvoke = AsyncMock(
        return_value=AIMessage(
            content="export default App;",
            usage_metadata={"total_tokens": 80, "input_tokens": 30, "output_tokens": 50},
        )
    )
    mock_chat_cls.return_value = mock_client

    response = await adapter.generate("Build App", GenerationOptions(system="You write React", temperature=0.1))

    assert response.content == "export default App;"
    assert response.model == "claude-3-5-sonnet-20241022"
    assert response.tokens_used == 80

    messages = mock_client.ainvoke.call_args[0][0]
    assert [m.content for m in messages] == ["You write React", "Build App"]

    call_kwargs = mock_chat_cls.call_args[1]
    assert call_kwargs["anthropic_api_key"] == "sk-ant-test"
    assert call_kwargs["max_retries"] == 0
    assert call_kwargs["timeout"] == 20.0
    assert call_kwargs["temperature"] == 0.1


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_clients_are_cached_per_settings(mock_chat_cls, adapter):
    mock_chat_cls.return_value.ainvoke = AsyncMock(return_value=AIMessage(content="ok"))

    await adapter.generate("a")
    await adapter.generate("b")
    await adapter.generate("c", GenerationOptions(temperature=0.9))

    assert mock_chat_cls.call_count == 2


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_content_blocks_are_flattened(mock_chat_cls, adapter):
    mock_chat_cls.return_value.ainvoke = AsyncMock(
        return_value=AIMessage(content=[{"type": "text", "text": "part one "}, "part two"])
    )

    response = await adapter.generate("hi")

    assert response.content == "part one part two"


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_empty_reply_is_parse_error(mock_chat_cls, adapter):
    mock_chat_cls.return_value.ainvoke = AsyncMock(return_value=AIMessage(content=""))

    with pytest.raises(ResponseParseError):
        await adapter.generate("hi")


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_api_errors_become_request_failed(mock_chat_cls, adapter):
    mock_chat_cls.return_value.ainvoke = AsyncMock(side_effect=Exception("overloaded"))

    with pytest.raises(RequestFailedError, match="overloaded") as exc_info:
        await adapter.generate("hi")

    assert exc_info.value.provider_id == "anthropic"


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_stream_uses_astream(mock_chat_cls, adapter):
    async def astream(messages, **kwargs):
        for text in ("const ", "x;"):
            yield AIMessageChunk(content=text)

    mock_chat_cls.return_value.astream = astream

    chunks = [chunk async for chunk in adapter.stream("hi")]

    assert "".join(c.content for c in chunks) == "const x;"
    assert chunks[-1].done is True
    assert not any(c.emulated for c in chunks)


@pytest.mark.asyncio
@patch("codeforge.llm.anthropic_provider.ChatAnthropic")
async def test_aclose_drops_cached_clients(mock_chat_cls, adapter):
    mock_chat_cls.return_value.ainvoke = AsyncMock(return_value=AIMessage(content="ok"))
    await adapter.generate("hi")

    await adapter.aclose()
    await adapter.generate("hi")

    assert mock_chat_cls.call_count == 2


def test_factory_picks_variant_by_provider_id(config):
    catalog = default_catalog()
    config.default_provider = "openai"
    config.default_model = "gpt-4"

    anthropic = create_adapter(catalog.get_provider("anthropic"), "k", config)
    openai = create_adapter(catalog.get_provider("openai"), "k", config)

    assert isinstance(anthropic, AnthropicAdapter)
    assert isinstance(openai, LiteLLMAdapter)
    assert openai.default_model == "gpt-4"
    assert openai.timeout == config.request_timeout
    assert anthropic.default_model == catalog.get_provider("anthropic").default_model.id
