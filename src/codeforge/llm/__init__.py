"""Provider adapters and retry policy."""

from .anthropic_provider import AnthropicAdapter
from .factory import ADAPTER_VARIANTS, AdapterFactory, create_adapter
from .litellm_provider import LiteLLMAdapter
from .provider import GenerationOptions, LLMResponse, ProviderAdapter, StreamChunk
from .retry import RetryPolicy
from .token_estimator import LiteLLMTokenEstimator, TokenEstimator

__all__ = [
    "AnthropicAdapter",
    "ADAPTER_VARIANTS",
    "AdapterFactory",
    "create_adapter",
    "LiteLLMAdapter",
    "GenerationOptions",
    "LLMResponse",
    "ProviderAdapter",
    "StreamChunk",
    "RetryPolicy",
    "LiteLLMTokenEstimator",
    "TokenEstimator",
]
