"""Anthropic Claude adapter using LangChain."""

import logging
from typing import Any, AsyncIterator, Optional

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from ..errors import RequestFailedError, ResponseParseError
from .provider import GenerationOptions, LLMResponse, ProviderAdapter

logger = logging.getLogger(__name__)


class AnthropicAdapter(ProviderAdapter):
    """Anthropic Claude adapter built on ``ChatAnthropic``.

    One chat model client is cached per (model, temperature, max tokens,
    timeout) combination.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._clients: dict[tuple, ChatAnthropic] = {}

    def _client_for(self, options: GenerationOptions) -> ChatAnthropic:
        model = self.resolve_model(options)
        timeout = options.timeout or self.timeout
        key = (model, options.temperature, options.max_output_tokens, timeout)
        client = self._clients.get(key)
        if client is None:
            kwargs: dict[str, Any] = {
                "model": model,
                "anthropic_api_key": self.credential,
                "max_retries": 0,
                "timeout": timeout,
            }
            if options.temperature is not None:
                kwargs["temperature"] = options.temperature
            if options.max_output_tokens:
                kwargs["max_tokens"] = options.max_output_tokens
            client = ChatAnthropic(**kwargs)
            self._clients[key] = client
        return client

    @staticmethod
    def _messages(prompt: str, system: Optional[str]) -> list[BaseMessage]:
        messages: list[BaseMessage] = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))
        return messages

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> LLMResponse:
        """Generate a response using Claude.

        Raises:
            RequestFailedError: If the API call fails
            ResponseParseError: If the reply carries no text
        """
        options = options or GenerationOptions()
        client = self._client_for(options)
        try:
            response = await client.ainvoke(self._messages(prompt, options.system), **options.extra)
        except Exception as e:
            raise self._map_error(e) from e

        content = self._coerce_content(getattr(response, "content", None))
        if not content:
            raise ResponseParseError(
                f"Empty response content from {self.provider_id}", provider_id=self.provider_id
            )

        usage = getattr(response, "usage_metadata", None)
        return LLMResponse(
            content=content,
            model=self.resolve_model(options),
            provider_id=self.provider_id,
            tokens_used=usage.get("total_tokens") if isinstance(usage, dict) else None,
        )

    async def _stream_native(
        self, prompt: str, options: Optional[GenerationOptions]
    ) -> AsyncIterator[str]:
        options = options or GenerationOptions()
        client = self._client_for(options)
        try:
            async for chunk in client.astream(self._messages(prompt, options.system), **options.extra):
                yield self._coerce_content(chunk.content)
        except (RequestFailedError, ResponseParseError):
            raise
        except Exception as e:
            raise self._map_error(e) from e

    async def aclose(self) -> None:
        self._clients.clear()

    def _map_error(self, error: Exception) -> RequestFailedError:
        status = getattr(error, "status_code", None)
        return RequestFailedError(
            f"Anthropic request failed: {error}",
            provider_id=self.provider_id,
            status_code=status if isinstance(status, int) else None,
        )

    @staticmethod
    def _coerce_content(content: Any) -> str:
        """Flatten LangChain message content into plain text."""
        if content is None:
            return ""
        if isinstance(content, str):
            return content

        if isinstance(content, list):
            parts: list[str] = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict):
                    parts.append(block.get("text") or "")
                else:
                    parts.append(getattr(block, "text", None) or "")
            return "".join(parts)

        return str(content)
