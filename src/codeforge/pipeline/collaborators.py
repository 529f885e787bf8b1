"""Protocols for the external collaborators the pipeline consumes.

Each collaborator is optional. A missing or failing collaborator leaves its
part of the generation context empty; it never aborts a run.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from ..models import GeneratedArtifact, GenerationRequest, RetrievedItem


@runtime_checkable
class SimilaritySearch(Protocol):
    """Finds previously generated or catalogued artifacts similar to a request."""

    async def find_similar(self, request: GenerationRequest) -> list[RetrievedItem]:
        """Return results ranked best first."""
        ...


@runtime_checkable
class DocumentationSource(Protocol):
    """Supplies framework documentation for a component type."""

    async def fetch(self, framework: str, component_type: str) -> Optional[str]:
        ...


@runtime_checkable
class ArtifactStore(Protocol):
    """Persists artifacts and serves code templates.

    ``store`` receives an immutable snapshot and returns the stored id.
    """

    async def store(self, artifact: GeneratedArtifact) -> str:
        ...

    async def fetch_templates(self, category: str, framework: str) -> list[str]:
        ...


@runtime_checkable
class ProjectContextSource(Protocol):
    """Describes the surrounding project: conventions, design tokens, patterns."""

    async def describe(self, request: GenerationRequest) -> dict[str, Any]:
        ...
