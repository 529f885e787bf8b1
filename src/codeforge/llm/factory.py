"""Adapter factory keyed on provider id."""

import logging
from typing import Any, Callable, Optional

from ..catalog.descriptors import ProviderDescriptor
from .anthropic_provider import AnthropicAdapter
from .litellm_provider import LiteLLMAdapter
from .provider import ProviderAdapter

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[ProviderDescriptor, Optional[str], Any], ProviderAdapter]

# Providers with a dedicated variant. Everything else, custom
# OpenAI-compatible endpoints included, goes through litellm.
ADAPTER_VARIANTS: dict[str, type[ProviderAdapter]] = {
    "anthropic": AnthropicAdapter,
}


def create_adapter(
    descriptor: ProviderDescriptor, credential: Optional[str], config: Any = None
) -> ProviderAdapter:
    """Create the adapter variant for ``descriptor``.

    Args:
        descriptor: Provider catalog entry
        credential: API key, or None for providers that need none
        config: Optional Config supplying the default model and timeout

    Returns:
        A ProviderAdapter bound to the descriptor and credential
    """
    adapter_cls = ADAPTER_VARIANTS.get(descriptor.id, LiteLLMAdapter)

    default_model = None
    timeout = 60.0
    if config is not None:
        timeout = config.request_timeout
        if config.default_provider == descriptor.id and descriptor.get_model(config.default_model):
            default_model = config.default_model

    logger.debug("Creating %s for provider %s", adapter_cls.__name__, descriptor.id)
    return adapter_cls(descriptor, credential, default_model=default_model, timeout=timeout)
