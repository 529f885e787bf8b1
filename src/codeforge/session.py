"""Session facade: one registry, one orchestrator, all outbound operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from .catalog import Catalog, ModelDescriptor, ProviderDescriptor, Recommendation
from .config import Config
from .credentials import CredentialSource, EnvCredentialSource
from .llm.factory import AdapterFactory, create_adapter
from .llm.retry import RetryPolicy
from .llm.token_estimator import LiteLLMTokenEstimator, TokenEstimator
from .models import GeneratedArtifact, GenerationRequest, PromptAnalysis, ValidationReport
from .pipeline.collaborators import ArtifactStore, DocumentationSource, ProjectContextSource, SimilaritySearch
from .pipeline.events import EventCallback
from .pipeline.orchestrator import BatchResult, GenerationOrchestrator
from .pipeline.reviewer import Reviewer
from .registry import ProviderRegistry
from .storage import DirectoryDocumentationSource, FileArtifactStore
from .streaming import ChunkCallback

logger = logging.getLogger(__name__)


class GenerationSession:
    """Entry point for embedding codeforge.

    Owns exactly one ProviderRegistry (and so one active provider/model pair)
    and one GenerationOrchestrator. A store that also implements
    SimilaritySearch doubles as the similarity source unless one is given.

    Example:
        ```python
        async with GenerationSession.from_env() as session:
            artifact = await session.generate(GenerationRequest(prompt="A login form"))
        ```
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        credentials: Optional[CredentialSource] = None,
        catalog: Optional[Catalog] = None,
        adapter_factory: AdapterFactory = create_adapter,
        store: Optional[ArtifactStore] = None,
        similarity: Optional[SimilaritySearch] = None,
        documentation: Optional[DocumentationSource] = None,
        project: Optional[ProjectContextSource] = None,
        reviewer: Optional[Reviewer] = None,
        policy: Optional[RetryPolicy] = None,
        token_estimator: Optional[TokenEstimator] = None,
        initialize: bool = True,
    ):
        self.config = config or Config()
        self.registry = ProviderRegistry(
            catalog=catalog,
            credentials=credentials,
            adapter_factory=adapter_factory,
            config=self.config,
        )
        if similarity is None and isinstance(store, SimilaritySearch):
            similarity = store
        self.store = store
        self.orchestrator = GenerationOrchestrator(
            self.registry,
            config=self.config,
            similarity=similarity,
            documentation=documentation,
            store=store,
            project=project,
            reviewer=reviewer,
            policy=policy,
            token_estimator=token_estimator,
        )
        if initialize:
            self.registry.initialize()

    @classmethod
    def from_env(cls, **overrides: Any) -> "GenerationSession":
        """Build a session from environment configuration and credentials.

        Artifacts go to a FileArtifactStore under ``config.output_dir``;
        documentation is read from ``config.docs_dir`` when set.
        """
        config = overrides.pop("config", None) or Config.from_env()
        overrides.setdefault("credentials", EnvCredentialSource())
        overrides.setdefault("store", FileArtifactStore(config.output_dir, config.templates_dir))
        if config.docs_dir is not None:
            overrides.setdefault("documentation", DirectoryDocumentationSource(config.docs_dir))
        overrides.setdefault("token_estimator", LiteLLMTokenEstimator())
        return cls(config=config, **overrides)

    # Generation

    async def generate(
        self, request: GenerationRequest, on_event: Optional[EventCallback] = None
    ) -> GeneratedArtifact:
        return await self.orchestrator.generate(request, on_event)

    async def generate_stream(
        self,
        request: GenerationRequest,
        on_chunk: ChunkCallback,
        on_event: Optional[EventCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedArtifact:
        return await self.orchestrator.generate_stream(request, on_chunk, on_event, cancel_event)

    async def generate_variations(self, request: GenerationRequest, count: int = 3) -> list[GeneratedArtifact]:
        return await self.orchestrator.generate_variations(request, count)

    async def generate_batch(
        self, requests: list[GenerationRequest], on_event: Optional[EventCallback] = None
    ) -> list[BatchResult]:
        return await self.orchestrator.generate_batch(requests, on_event)

    async def translate(self, artifact: GeneratedArtifact, target_framework: str) -> GeneratedArtifact:
        return await self.orchestrator.translate(artifact, target_framework)

    def analyze_prompt(self, prompt: str) -> PromptAnalysis:
        return self.orchestrator.analyze_prompt(prompt)

    def validate_artifact(self, artifact: GeneratedArtifact) -> ValidationReport:
        return self.orchestrator.validate_artifact(artifact)

    # Providers and models

    @property
    def active(self) -> Optional[tuple[str, str]]:
        """The active (provider_id, model_id) pair."""
        return self.registry.active

    def list_providers(self) -> list[ProviderDescriptor]:
        return self.registry.list_providers()

    def list_models(self, provider_id: str) -> list[ModelDescriptor]:
        return self.registry.list_models(provider_id)

    def recommend(self, use_case: str, top_n: int = 5) -> list[Recommendation]:
        return self.registry.recommend(use_case, top_n)

    def set_provider(self, provider_id: str, model_id: str) -> None:
        self.registry.set_provider(provider_id, model_id)

    def register_provider(self, descriptor: ProviderDescriptor, credential: Optional[str] = None) -> str:
        return self.registry.register_provider(descriptor, credential)

    def deregister_provider(self, provider_id: str) -> bool:
        return self.registry.deregister_provider(provider_id)

    async def test_connection(self, provider_id: str, timeout: Optional[float] = None) -> bool:
        return await self.registry.test_connection(provider_id, timeout)

    async def test_all_providers(self, timeout: Optional[float] = None) -> dict[str, bool]:
        return await self.registry.test_all_providers(timeout)

    async def aclose(self) -> None:
        await self.registry.aclose()

    async def __aenter__(self) -> "GenerationSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
