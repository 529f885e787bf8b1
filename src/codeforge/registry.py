"""Provider registry: adapter lifecycle, runtime providers and the active pair."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from .catalog import (
    Catalog,
    ModelDescriptor,
    ModelScorer,
    ProviderDescriptor,
    Recommendation,
    ScoringWeights,
    default_catalog,
)
from .config import Config
from .credentials import CredentialSource, EnvCredentialSource, is_usable_credential
from .errors import CredentialMissingError, ModelNotFoundError, ProviderNotFoundError
from .llm.factory import AdapterFactory, create_adapter
from .llm.prompts import CONNECTION_TEST_PROMPT
from .llm.provider import GenerationOptions, ProviderAdapter

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "custom-"


@dataclass(frozen=True)
class Candidate:
    """A provider/model pair with a live adapter, eligible for generation."""

    provider_id: str
    model_id: str
    adapter: ProviderAdapter


class ProviderRegistry:
    """Owns the catalog, the live adapters and the active provider/model pair.

    Mutations are serialized by a lock and never await while holding it.
    The adapter map is replaced (not edited) on every change, so readers and
    in-flight generate calls work on a stable snapshot without locking.
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        credentials: Optional[CredentialSource] = None,
        adapter_factory: AdapterFactory = create_adapter,
        config: Optional[Config] = None,
        scorer: Optional[ModelScorer] = None,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.credentials = credentials or EnvCredentialSource()
        self.config = config or Config()
        self.scorer = scorer or ModelScorer(
            ScoringWeights(recommend_threshold=self.config.recommend_threshold)
        )
        self._adapter_factory = adapter_factory
        self._adapters: dict[str, ProviderAdapter] = {}
        self._custom_ids: frozenset[str] = frozenset()
        self._active: Optional[tuple[str, str]] = None
        self._lock = threading.Lock()
        self._retired: list[ProviderAdapter] = []
        self._closing: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> list[str]:
        """Scan credential slots and create adapters for usable credentials.

        Returns:
            Ids of the providers that received an adapter.
        """
        with self._lock:
            adapters = dict(self._adapters)
            for descriptor in self.catalog.providers():
                if descriptor.custom or descriptor.id in adapters:
                    continue
                credential = self.credentials.get(descriptor.id)
                if descriptor.requires_api_key and not is_usable_credential(credential):
                    logger.debug("No usable credential for %s, skipping", descriptor.id)
                    continue
                adapter = self._build_adapter(descriptor, credential)
                if adapter is not None:
                    adapters[descriptor.id] = adapter
            self._adapters = adapters
            if self._active is None:
                self._active = self._default_pair()

        registered = list(self._adapters)
        logger.info("Initialized %d provider(s): %s", len(registered), ", ".join(registered) or "none")
        return registered

    def _build_adapter(
        self, descriptor: ProviderDescriptor, credential: Optional[str]
    ) -> Optional[ProviderAdapter]:
        try:
            return self._adapter_factory(descriptor, credential, self.config)
        except Exception as e:
            logger.warning("Failed to initialize provider %s: %s", descriptor.id, e)
            return None

    def _default_pair(self) -> Optional[tuple[str, str]]:
        """Configured default if it is in the catalog, else the first live adapter's default model."""
        try:
            self.catalog.get_model(self.config.default_provider, self.config.default_model)
            return (self.config.default_provider, self.config.default_model)
        except ModelNotFoundError:
            pass
        for provider_id in self._adapters:
            descriptor = self.catalog.get_provider(provider_id)
            if descriptor.default_model is not None:
                return (provider_id, descriptor.default_model.id)
        return None

    def _retire(self, adapter: Optional[ProviderAdapter]) -> None:
        """Release a removed adapter.

        Closed right away when called on a running event loop, otherwise on
        the next ``aclose()``. In-flight calls that already hold the adapter
        keep their own reference.
        """
        if adapter is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._retired.append(adapter)
            return
        task = loop.create_task(self._close_adapter(adapter))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    @staticmethod
    async def _close_adapter(adapter: ProviderAdapter) -> None:
        try:
            await adapter.aclose()
        except Exception as e:
            logger.warning("Failed to close adapter for %s: %s", adapter.provider_id, e)

    def set_credential(self, provider_id: str, credential: Optional[str]) -> bool:
        """Create (or replace) a provider's adapter from a new credential.

        An unusable credential revokes the adapter instead.

        Returns:
            True if the provider now has an adapter.
        """
        with self._lock:
            descriptor = self.catalog.get_provider(provider_id)
            adapters = dict(self._adapters)
            previous = adapters.pop(provider_id, None)
            if is_usable_credential(credential) or not descriptor.requires_api_key:
                adapter = self._build_adapter(descriptor, credential)
                if adapter is not None:
                    adapters[provider_id] = adapter
            self._adapters = adapters
        self._retire(previous)
        return provider_id in adapters

    def revoke_credential(self, provider_id: str) -> bool:
        """Destroy a provider's adapter. Returns False if it had none."""
        with self._lock:
            if provider_id not in self._adapters:
                return False
            adapters = dict(self._adapters)
            removed = adapters.pop(provider_id)
            self._adapters = adapters
        self._retire(removed)
        logger.info("Revoked adapter for %s", provider_id)
        return True

    # ------------------------------------------------------------------
    # Runtime providers
    # ------------------------------------------------------------------

    def register_provider(self, descriptor: ProviderDescriptor, credential: Optional[str] = None) -> str:
        """Add a runtime provider under a freshly generated ``custom-`` id.

        Returns:
            The assigned provider id.
        """
        with self._lock:
            provider_id = f"{CUSTOM_PREFIX}{uuid4().hex[:12]}"
            while provider_id in self.catalog:
                provider_id = f"{CUSTOM_PREFIX}{uuid4().hex[:12]}"

            registered = descriptor.model_copy(
                update={"id": provider_id, "custom": True, "route_prefix": descriptor.route_prefix or "openai"}
            )
            self.catalog.add(registered)
            self._custom_ids = self._custom_ids | {provider_id}

            if is_usable_credential(credential) or not registered.requires_api_key:
                adapter = self._build_adapter(registered, credential)
                if adapter is not None:
                    self._adapters = {**self._adapters, provider_id: adapter}

        logger.info("Registered custom provider %s (%s)", provider_id, descriptor.name)
        return provider_id

    def deregister_provider(self, provider_id: str) -> bool:
        """Remove a runtime-registered provider.

        Returns:
            False if ``provider_id`` was not registered at runtime.
        """
        with self._lock:
            if provider_id not in self._custom_ids:
                logger.warning("Refusing to deregister non-custom provider %s", provider_id)
                return False
            self.catalog.remove(provider_id)
            self._custom_ids = self._custom_ids - {provider_id}
            adapters = dict(self._adapters)
            removed = adapters.pop(provider_id, None)
            self._adapters = adapters
            if self._active is not None and self._active[0] == provider_id:
                self._active = self._default_pair()
                logger.info("Active provider %s removed, falling back to %s", provider_id, self._active)

        self._retire(removed)
        logger.info("Deregistered custom provider %s", provider_id)
        return True

    def is_custom(self, provider_id: str) -> bool:
        return provider_id in self._custom_ids

    # ------------------------------------------------------------------
    # Active selection
    # ------------------------------------------------------------------

    @property
    def active(self) -> Optional[tuple[str, str]]:
        return self._active

    def set_provider(self, provider_id: str, model_id: str) -> None:
        """Make (provider_id, model_id) the active pair.

        Raises:
            ProviderNotFoundError: If the provider is not in the catalog
            ModelNotFoundError: If the provider has no such model
        """
        with self._lock:
            self.catalog.get_model(provider_id, model_id)
            self._active = (provider_id, model_id)
        if provider_id not in self._adapters:
            logger.warning("Active provider %s has no credential yet", provider_id)
        logger.info("Active provider set to %s/%s", provider_id, model_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_providers(self) -> list[ProviderDescriptor]:
        return self.catalog.providers()

    def list_models(self, provider_id: str) -> list[ModelDescriptor]:
        return list(self.catalog.get_provider(provider_id).models)

    def registered_providers(self) -> list[str]:
        """Ids of providers with a live adapter."""
        return list(self._adapters)

    def has_adapter(self, provider_id: str) -> bool:
        return provider_id in self._adapters

    def get_adapter(self, provider_id: str) -> ProviderAdapter:
        """Return the live adapter for a provider.

        Raises:
            ProviderNotFoundError: If the provider is not in the catalog
            CredentialMissingError: If the provider has no adapter
        """
        adapter = self._adapters.get(provider_id)
        if adapter is not None:
            return adapter
        if provider_id not in self.catalog:
            raise ProviderNotFoundError(provider_id)
        raise CredentialMissingError(provider_id)

    def recommend(self, use_case: str, top_n: int = 5) -> list[Recommendation]:
        return self.scorer.recommend(self.catalog, use_case, top_n)

    def generation_candidates(self, use_case: str, max_fallbacks: int) -> list[Candidate]:
        """Active pair first, then the best model of each other live provider.

        Fallbacks are ranked by score for ``use_case``; ties keep catalog order.
        """
        adapters = self._adapters
        active = self._active
        candidates: list[Candidate] = []
        if active is not None and active[0] in adapters:
            candidates.append(Candidate(active[0], active[1], adapters[active[0]]))

        best_per_provider: dict[str, tuple[str, float]] = {}
        for descriptor, model, score in self.scorer.rank(self.catalog, use_case):
            if descriptor.id not in adapters or descriptor.id in best_per_provider:
                continue
            if active is not None and descriptor.id == active[0]:
                continue
            best_per_provider[descriptor.id] = (model.id, score)

        fallbacks = [
            Candidate(provider_id, model_id, adapters[provider_id])
            for provider_id, (model_id, _) in best_per_provider.items()
        ][: max(max_fallbacks, 0)]
        return candidates + fallbacks

    # ------------------------------------------------------------------
    # Connection tests
    # ------------------------------------------------------------------

    async def test_connection(self, provider_id: str, timeout: Optional[float] = None) -> bool:
        """Send a minimal prompt through a provider. Never raises."""
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            logger.warning("Cannot test %s: no adapter registered", provider_id)
            return False
        model_id = self._active[1] if self._active and self._active[0] == provider_id else None
        options = GenerationOptions(model=model_id, max_output_tokens=10, timeout=timeout)
        try:
            response = await asyncio.wait_for(
                adapter.generate(CONNECTION_TEST_PROMPT, options),
                timeout=timeout or self.config.request_timeout,
            )
        except Exception as e:
            logger.warning("Connection test failed for %s: %s", provider_id, e)
            return False
        return bool(response.content)

    async def test_all_providers(self, timeout: Optional[float] = None) -> dict[str, bool]:
        provider_ids = list(self._adapters)
        results = await asyncio.gather(*(self.test_connection(pid, timeout) for pid in provider_ids))
        return dict(zip(provider_ids, results))

    async def aclose(self) -> None:
        """Close live adapters and any removed ones still waiting to be closed."""
        if self._closing:
            await asyncio.gather(*list(self._closing))
        retired, self._retired = self._retired, []
        for adapter in [*self._adapters.values(), *retired]:
            await self._close_adapter(adapter)
