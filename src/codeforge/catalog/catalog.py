"""Ordered provider/model catalog."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..errors import ModelNotFoundError, ProviderNotFoundError
from .defaults import BUILTIN_PROVIDERS
from .descriptors import ModelDescriptor, ProviderDescriptor


class Catalog:
    """Append-only list of provider descriptors (removal is explicit).

    Descriptors are kept in a tuple that is replaced on every mutation, so
    readers iterating a snapshot never see a half-applied change. Callers
    that mutate from several tasks serialize through the registry.
    """

    def __init__(self, providers: Iterable[ProviderDescriptor] = ()):
        self._providers: tuple[ProviderDescriptor, ...] = ()
        for descriptor in providers:
            self.add(descriptor)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return any(p.id == provider_id for p in self._providers)

    def providers(self) -> list[ProviderDescriptor]:
        return list(self._providers)

    def provider_ids(self) -> list[str]:
        return [p.id for p in self._providers]

    def get_provider(self, provider_id: str) -> ProviderDescriptor:
        """Return a provider descriptor.

        Raises:
            ProviderNotFoundError: If no provider has this id.
        """
        for descriptor in self._providers:
            if descriptor.id == provider_id:
                return descriptor
        raise ProviderNotFoundError(provider_id)

    def get_model(self, provider_id: str, model_id: str) -> ModelDescriptor:
        """Return a model descriptor.

        Raises:
            ProviderNotFoundError: If the provider is unknown.
            ModelNotFoundError: If the provider has no such model.
        """
        model = self.get_provider(provider_id).get_model(model_id)
        if model is None:
            raise ModelNotFoundError(provider_id, model_id)
        return model

    def iter_models(self) -> Iterator[tuple[ProviderDescriptor, ModelDescriptor]]:
        """Yield (provider, model) pairs in catalog order."""
        for descriptor in self._providers:
            for model in descriptor.models:
                yield descriptor, model

    def add(self, descriptor: ProviderDescriptor) -> None:
        if descriptor.id in self:
            raise ValueError(f"Provider '{descriptor.id}' is already in the catalog")
        self._providers = self._providers + (descriptor,)

    def remove(self, provider_id: str) -> ProviderDescriptor:
        descriptor = self.get_provider(provider_id)
        self._providers = tuple(p for p in self._providers if p.id != provider_id)
        return descriptor

    # Convenience queries

    def vision_models(self) -> list[tuple[ProviderDescriptor, ModelDescriptor]]:
        return [(p, m) for p, m in self.iter_models() if m.capabilities.vision]

    def coding_models(self) -> list[tuple[ProviderDescriptor, ModelDescriptor]]:
        """Coding-capable models that also advertise code in their name or best-for tags."""
        return [
            (p, m)
            for p, m in self.iter_models()
            if m.capabilities.coding
            and ("code" in m.name.lower() or any("cod" in tag.lower() for tag in m.best_for))
        ]

    def models_by_context_size(
        self, min_context: int = 100_000
    ) -> list[tuple[ProviderDescriptor, ModelDescriptor]]:
        """Models with at least ``min_context`` tokens, largest first."""
        matches = [(p, m) for p, m in self.iter_models() if m.context_window >= min_context]
        return sorted(matches, key=lambda pair: pair[1].context_window, reverse=True)

    def budget_models(
        self, max_input_price: float = 1.0
    ) -> list[tuple[ProviderDescriptor, ModelDescriptor]]:
        """Priced models at or under ``max_input_price`` per 1M input tokens, cheapest first."""
        matches = [
            (p, m)
            for p, m in self.iter_models()
            if m.pricing is not None and m.pricing.input <= max_input_price
        ]
        return sorted(matches, key=lambda pair: pair[1].pricing.input)


def default_catalog() -> Catalog:
    """Build a fresh catalog holding the built-in providers."""
    return Catalog(BUILTIN_PROVIDERS)


def find_model(catalog: Catalog, model_id: str) -> Optional[tuple[ProviderDescriptor, ModelDescriptor]]:
    """Locate a model by id across all providers."""
    for descriptor, model in catalog.iter_models():
        if model.id == model_id:
            return descriptor, model
    return None
