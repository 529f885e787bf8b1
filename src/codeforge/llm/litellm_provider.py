"""LiteLLM adapter covering every provider litellm can route to."""

import logging
from typing import Any, AsyncIterator, Optional

import litellm

from ..errors import RequestFailedError, ResponseParseError
from .provider import GenerationOptions, LLMResponse, ProviderAdapter

logger = logging.getLogger(__name__)


class LiteLLMAdapter(ProviderAdapter):
    """Adapter using ``litellm.acompletion`` for multi-provider support.

    litellm's own retries are disabled: retry and fallback belong to the
    orchestrator's ``RetryPolicy``.
    """

    def route(self, model: str) -> str:
        """Return the litellm model string, e.g. ``gemini/gemini-1.5-pro``."""
        prefix = self.descriptor.route_prefix
        if not prefix or model.startswith(f"{prefix}/"):
            return model
        return f"{prefix}/{model}"

    def _completion_kwargs(self, prompt: str, options: Optional[GenerationOptions]) -> dict[str, Any]:
        options = options or GenerationOptions()
        kwargs: dict[str, Any] = {
            "model": self.route(self.resolve_model(options)),
            "messages": self.build_messages(prompt, options.system),
            "max_retries": 0,
            "timeout": options.timeout or self.timeout,
        }
        if self.credential:
            kwargs["api_key"] = self.credential
        if self.descriptor.custom and self.descriptor.base_url:
            kwargs["api_base"] = self.descriptor.base_url
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.max_output_tokens:
            kwargs["max_tokens"] = options.max_output_tokens
        kwargs.update(options.extra)

        logger.debug(
            "litellm call for %s: %s",
            self.provider_id,
            {k: ("***" if k == "api_key" else v) for k, v in kwargs.items() if k != "messages"},
        )
        return kwargs

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> LLMResponse:
        """Generate a response through litellm.

        Raises:
            RequestFailedError: If the call fails or times out
            ResponseParseError: If the response has no message content
        """
        kwargs = self._completion_kwargs(prompt, options)
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            raise self._map_error(e) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise ResponseParseError(
                f"Malformed response from {self.provider_id}: {e}", provider_id=self.provider_id
            ) from e
        if content is None:
            raise ResponseParseError(
                f"Empty message content from {self.provider_id}", provider_id=self.provider_id
            )

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=content,
            model=self.resolve_model(options),
            provider_id=self.provider_id,
            tokens_used=getattr(usage, "total_tokens", None) if usage else None,
        )

    async def _stream_native(
        self, prompt: str, options: Optional[GenerationOptions]
    ) -> AsyncIterator[str]:
        kwargs = self._completion_kwargs(prompt, options)
        kwargs["stream"] = True
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            raise self._map_error(e) from e

        try:
            async for part in response:
                try:
                    delta = part.choices[0].delta
                except (AttributeError, IndexError) as e:
                    raise ResponseParseError(
                        f"Malformed stream chunk from {self.provider_id}: {e}",
                        provider_id=self.provider_id,
                    ) from e
                yield getattr(delta, "content", None) or ""
        except (RequestFailedError, ResponseParseError):
            raise
        except Exception as e:
            raise self._map_error(e) from e
        finally:
            close = getattr(response, "aclose", None)
            if close is not None:
                await close()

    def _map_error(self, error: Exception) -> RequestFailedError:
        status = getattr(error, "status_code", None)
        if isinstance(error, litellm.AuthenticationError):
            return RequestFailedError(
                f"{self.descriptor.name} authentication failed. Check the API key for '{self.provider_id}'",
                provider_id=self.provider_id,
                status_code=status or 401,
            )
        if isinstance(error, litellm.RateLimitError):
            return RequestFailedError(
                f"Rate limit exceeded for {self.provider_id}",
                provider_id=self.provider_id,
                status_code=status or 429,
            )
        if isinstance(error, litellm.Timeout):
            return RequestFailedError(
                f"Request to {self.provider_id} timed out", provider_id=self.provider_id, status_code=status
            )
        return RequestFailedError(
            f"{self.provider_id} request failed: {error}",
            provider_id=self.provider_id,
            status_code=status if isinstance(status, int) else None,
        )
