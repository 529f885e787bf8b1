"""Abstract provider adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional

from pydantic import BaseModel, Field

from ..catalog.descriptors import ModelDescriptor, ProviderDescriptor


class GenerationOptions(BaseModel):
    """Per-call options accepted by every adapter."""

    model: Optional[str] = Field(default=None, description="Model override for this call")
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    timeout: Optional[float] = Field(default=None, description="Overrides the adapter timeout")
    system: Optional[str] = None
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Provider-specific passthrough arguments"
    )


class LLMResponse(BaseModel):
    """Response from a provider adapter."""

    content: str
    model: str
    provider_id: str
    tokens_used: Optional[int] = None


class StreamChunk(BaseModel):
    """One fragment of streamed output.

    ``done`` marks the end of the stream. ``emulated`` is set when the backend
    has no incremental delivery and the whole response arrives as one chunk.
    """

    content: str = ""
    done: bool = False
    emulated: bool = False
    model: Optional[str] = None


class ProviderAdapter(ABC):
    """Uniform client bound to one provider descriptor and credential."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        credential: Optional[str] = None,
        default_model: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.descriptor = descriptor
        self.credential = credential
        self.default_model = default_model or (
            descriptor.default_model.id if descriptor.default_model else None
        )
        self.timeout = timeout

    @property
    def provider_id(self) -> str:
        return self.descriptor.id

    def resolve_model(self, options: Optional[GenerationOptions] = None) -> str:
        model = (options.model if options else None) or self.default_model
        if not model:
            raise ValueError(f"No model configured for provider '{self.provider_id}'")
        return model

    def _model_descriptor(self, model_id: Optional[str]) -> Optional[ModelDescriptor]:
        return self.descriptor.get_model(model_id) if model_id else None

    @abstractmethod
    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> LLMResponse:
        """Generate a complete response.

        Args:
            prompt: The user prompt
            options: Optional per-call options

        Returns:
            LLMResponse containing the generated text

        Raises:
            RequestFailedError: On network, timeout or upstream status failures
            ResponseParseError: If the upstream payload is missing or malformed
        """
        pass

    async def stream(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[StreamChunk]:
        """Stream the response as chunks, ending with a ``done`` chunk.

        The iterator is lazy and single-use. Providers without incremental
        delivery make one full call and yield a single emulated chunk.
        """
        model = self.resolve_model(options)
        if not self.supports_streaming(model):
            response = await self.generate(prompt, options)
            yield StreamChunk(content=response.content, done=True, emulated=True, model=response.model)
            return

        fragments = self._stream_native(prompt, options)
        try:
            async for fragment in fragments:
                if fragment:
                    yield StreamChunk(content=fragment, model=model)
        finally:
            # Closing this stream early must release the backend call too
            await fragments.aclose()
        yield StreamChunk(done=True, model=model)

    async def _stream_native(
        self, prompt: str, options: Optional[GenerationOptions]
    ) -> AsyncIterator[str]:
        """Yield raw text fragments from the backend's native stream."""
        raise NotImplementedError(f"{type(self).__name__} has no native streaming")
        yield ""  # pragma: no cover

    def supports_streaming(self, model_id: Optional[str] = None) -> bool:
        if not self.descriptor.features.streaming:
            return False
        model = self._model_descriptor(model_id or self.default_model)
        return model.capabilities.streaming if model else True

    def supports_vision(self) -> bool:
        return self.descriptor.features.vision

    def supports_function_calling(self) -> bool:
        return self.descriptor.features.function_calling

    async def aclose(self) -> None:
        """Release any cached clients. Default is a no-op."""
        return None

    @staticmethod
    def build_messages(prompt: str, system: Optional[str] = None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r}, model={self.default_model!r})"
