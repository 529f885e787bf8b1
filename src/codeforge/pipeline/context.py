"""Assembling the per-request generation context from collaborators."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, TypeVar

from ..models import GenerationContext, GenerationRequest, RetrievedItem
from .collaborators import ArtifactStore, DocumentationSource, ProjectContextSource, SimilaritySearch
from .extraction import infer_category, infer_component_type

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FRAMEWORK = "react"


@dataclass
class ContextDraft:
    """Mutable accumulator, frozen into a GenerationContext once complete."""

    similar: list[RetrievedItem] = field(default_factory=list)
    documentation: list[str] = field(default_factory=list)
    code_patterns: list[str] = field(default_factory=list)
    project: dict[str, Any] = field(default_factory=dict)
    degraded: list[str] = field(default_factory=list)

    def freeze(self) -> GenerationContext:
        return GenerationContext(
            similar=tuple(self.similar),
            documentation=tuple(self.documentation),
            code_patterns=tuple(self.code_patterns),
            project=dict(self.project),
            degraded=tuple(self.degraded),
        )


class ContextBuilder:
    """Gathers project metadata, templates, similar artifacts and docs.

    Every collaborator call runs under ``timeout``. Errors and timeouts are
    logged, recorded in ``degraded`` and replaced by an empty result.
    """

    def __init__(
        self,
        similarity: Optional[SimilaritySearch] = None,
        documentation: Optional[DocumentationSource] = None,
        store: Optional[ArtifactStore] = None,
        project: Optional[ProjectContextSource] = None,
        timeout: float = 5.0,
        max_similar: int = 5,
    ):
        self.similarity = similarity
        self.documentation = documentation
        self.store = store
        self.project = project
        self.timeout = timeout
        self.max_similar = max_similar

    async def _guarded(self, source: str, call: Awaitable[T], fallback: T, draft: ContextDraft) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs, continuing without it", source, self.timeout)
        except Exception as e:
            logger.warning("%s failed, continuing without it: %s", source, e)
        draft.degraded.append(source)
        return fallback

    async def build_project_context(self, request: GenerationRequest, draft: ContextDraft) -> None:
        """Project metadata and code templates."""
        framework = request.framework or DEFAULT_FRAMEWORK
        category = request.category or infer_category(request.prompt)

        if self.project is not None:
            draft.project = await self._guarded("project", self.project.describe(request), {}, draft) or {}
        if self.store is not None:
            templates = await self._guarded(
                "templates", self.store.fetch_templates(category, framework), [], draft
            )
            draft.code_patterns = list(templates or [])

    async def retrieve(self, request: GenerationRequest, draft: ContextDraft) -> None:
        """Similar artifacts and documentation, fetched concurrently."""
        framework = request.framework or DEFAULT_FRAMEWORK
        component_type = infer_component_type(request.prompt)

        async def similar() -> list[RetrievedItem]:
            if self.similarity is None:
                return []
            return await self._guarded("similarity", self.similarity.find_similar(request), [], draft) or []

        async def docs() -> Optional[str]:
            if self.documentation is None:
                return None
            return await self._guarded(
                "documentation", self.documentation.fetch(framework, component_type), None, draft
            )

        found, doc = await asyncio.gather(similar(), docs())
        draft.similar = list(found)[: self.max_similar]
        draft.documentation = [doc] if doc else []
        logger.debug(
            "Retrieved %d similar item(s) and %d doc excerpt(s)", len(draft.similar), len(draft.documentation)
        )

    async def build(self, request: GenerationRequest) -> GenerationContext:
        """Run both stages back to back."""
        draft = ContextDraft()
        await self.build_project_context(request, draft)
        await self.retrieve(request, draft)
        return draft.freeze()
