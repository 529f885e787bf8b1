"""Local collaborator implementations: artifact stores and documentation sources.

Both stores also implement ``SimilaritySearch`` with a keyword-overlap ranking,
so a session can run end to end without external services.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

import yaml

from .models import GeneratedArtifact, GenerationRequest, RetrievedItem
from .pipeline.extraction import extract_code

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
# Delimiters are whole "---" lines; free text inside the YAML may contain "---".
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?$\n?(.*)\Z", re.DOTALL | re.MULTILINE)
STOPWORDS = frozenset({
    "a", "an", "and", "the", "with", "for", "of", "to", "in", "on", "that", "this", "it",
    "create", "build", "make", "component", "please", "using", "use",
})
TEMPLATE_SUFFIXES = (".tsx", ".jsx", ".ts", ".js", ".vue", ".svelte", ".py", ".txt")
FILE_LANGUAGES = {"react": "tsx", "vue": "vue", "angular": "ts", "svelte": "svelte"}
MAX_DOC_CHARS = 4000


def tokenize(text: str) -> set[str]:
    return {t for t in _TOKEN_RE.findall(text.lower()) if t not in STOPWORDS and len(t) > 1}


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-") or "artifact"


def _artifact_terms(artifact: GeneratedArtifact) -> set[str]:
    parts = [artifact.framework or "", artifact.category or "", artifact.component_type or ""]
    parts.extend(artifact.tags)
    parts.extend(artifact.dependencies)
    return tokenize(" ".join(parts))


def rank_similar(
    request: GenerationRequest,
    artifacts: Iterable[tuple[str, GeneratedArtifact]],
    limit: Optional[int] = None,
) -> list[RetrievedItem]:
    """Rank stored artifacts against a request, best first.

    Artifacts named in ``request.context_refs`` always come first with score
    1.0. Others score by the share of request terms found in the artifact's
    framework, category, component type, tags and dependencies. Zero scores
    are dropped.
    """
    query = tokenize(" ".join(filter(None, [request.prompt, request.framework, request.category])))
    refs = set(request.context_refs)
    items: list[RetrievedItem] = []
    for artifact_id, artifact in artifacts:
        if artifact_id in refs:
            score = 1.0
        elif query:
            score = round(len(query & _artifact_terms(artifact)) / len(query), 6)
        else:
            score = 0.0
        if score <= 0:
            continue
        items.append(RetrievedItem(
            id=artifact_id,
            score=score,
            metadata={
                "title": f"{artifact.component_type or 'component'} ({artifact.framework or 'unknown'})",
                "framework": artifact.framework,
                "category": artifact.category,
                "tags": list(artifact.tags),
                "quality_score": artifact.quality_score,
            },
        ))
    items.sort(key=lambda item: item.score, reverse=True)
    return items[:limit] if limit is not None else items


class InMemoryArtifactStore:
    """Dict-backed store, mainly for tests and embedding."""

    def __init__(self, templates: Optional[Mapping[tuple[str, str], list[str]]] = None):
        self._artifacts: dict[str, GeneratedArtifact] = {}
        self._templates: dict[tuple[str, str], list[str]] = {
            (category, framework.lower()): list(codes) for (category, framework), codes in (templates or {}).items()
        }

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._artifacts

    def add_template(self, category: str, framework: str, code: str) -> None:
        self._templates.setdefault((category, framework.lower()), []).append(code)

    def get(self, artifact_id: str) -> Optional[GeneratedArtifact]:
        artifact = self._artifacts.get(artifact_id)
        return artifact.snapshot() if artifact is not None else None

    async def store(self, artifact: GeneratedArtifact) -> str:
        artifact_id = f"{slugify(artifact.component_type or 'artifact')}-{uuid4().hex[:8]}"
        stored = artifact.snapshot()
        stored.metadata.artifact_id = artifact_id
        stored.metadata.persisted = True
        self._artifacts[artifact_id] = stored
        return artifact_id

    async def fetch_templates(self, category: str, framework: str) -> list[str]:
        return list(self._templates.get((category, framework.lower()), []))

    async def find_similar(self, request: GenerationRequest) -> list[RetrievedItem]:
        return rank_similar(request, list(self._artifacts.items()))


class FileArtifactStore:
    """Markdown files with YAML frontmatter under ``output_dir``.

    Each artifact is written to ``<output_dir>/<artifact_id>.md``: the
    frontmatter holds every field except the body, which follows in a fenced
    code block. Templates are read from
    ``<templates_dir>/<framework>/<category-slug>/``.

    All filesystem access runs in a worker thread.
    """

    def __init__(self, output_dir: Path, templates_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir)
        self.templates_dir = Path(templates_dir) if templates_dir else None

    def path_for(self, artifact_id: str) -> Path:
        return self.output_dir / f"{artifact_id}.md"

    async def store(self, artifact: GeneratedArtifact) -> str:
        artifact_id = f"{slugify(artifact.component_type or 'artifact')}-{uuid4().hex[:8]}"
        await asyncio.to_thread(self._write, artifact_id, artifact)
        logger.debug("Wrote %s", self.path_for(artifact_id))
        return artifact_id

    async def fetch_templates(self, category: str, framework: str) -> list[str]:
        if self.templates_dir is None:
            return []
        return await asyncio.to_thread(self._read_templates, category, framework)

    async def find_similar(self, request: GenerationRequest) -> list[RetrievedItem]:
        artifacts = await asyncio.to_thread(self._load_all)
        return rank_similar(request, artifacts)

    def load(self, artifact_id: str) -> GeneratedArtifact:
        """Read a stored artifact back.

        Raises:
            FileNotFoundError: If no artifact has that id
            ValueError: If the file has no frontmatter
        """
        return self._parse(self.path_for(artifact_id).read_text(encoding="utf-8"))

    def _write(self, artifact_id: str, artifact: GeneratedArtifact) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        data = artifact.model_dump(mode="json", exclude={"body"})
        data["metadata"]["artifact_id"] = artifact_id
        data["metadata"]["persisted"] = True
        frontmatter = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
        language = FILE_LANGUAGES.get((artifact.framework or "").lower(), "")
        content = f"---\n{frontmatter}---\n\n```{language}\n{artifact.body.strip()}\n```\n"
        self.path_for(artifact_id).write_text(content, encoding="utf-8")

    @staticmethod
    def _split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
        """Split YAML frontmatter from the markdown body."""
        match = _FRONTMATTER_RE.match(content)
        if match is None:
            return {}, content

        raw_meta, rest = match.groups()
        try:
            metadata = yaml.safe_load(raw_meta) or {}
        except yaml.YAMLError:
            metadata = {}
        return metadata, rest.strip()

    def _parse(self, content: str) -> GeneratedArtifact:
        data, rest = self._split_frontmatter(content)
        if not data:
            raise ValueError("Artifact file has no frontmatter")
        return GeneratedArtifact.model_validate({**data, "body": extract_code(rest)})

    def _load_all(self) -> list[tuple[str, GeneratedArtifact]]:
        if not self.output_dir.is_dir():
            return []
        artifacts = []
        for path in sorted(self.output_dir.glob("*.md")):
            try:
                artifacts.append((path.stem, self._parse(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable artifact %s: %s", path.name, e)
        return artifacts

    def _read_templates(self, category: str, framework: str) -> list[str]:
        directory = self.templates_dir / framework.lower() / slugify(category)
        if not directory.is_dir():
            return []
        return [
            path.read_text(encoding="utf-8")
            for path in sorted(directory.iterdir())
            if path.is_file() and path.suffix in TEMPLATE_SUFFIXES
        ]


class StaticDocumentationSource:
    """Documentation keyed by ``"framework/component_type"`` or ``"framework"``."""

    def __init__(self, docs: Mapping[str, str]):
        self._docs = {key.lower(): value for key, value in docs.items()}

    async def fetch(self, framework: str, component_type: str) -> Optional[str]:
        framework = framework.lower()
        return self._docs.get(f"{framework}/{component_type.lower()}") or self._docs.get(framework)


class DirectoryDocumentationSource:
    """Reads ``<docs_dir>/<framework>/<component_type>.md``, then ``<docs_dir>/<framework>.md``."""

    def __init__(self, docs_dir: Path, max_chars: int = MAX_DOC_CHARS):
        self.docs_dir = Path(docs_dir)
        self.max_chars = max_chars

    async def fetch(self, framework: str, component_type: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, framework.lower(), component_type.lower())

    def _read(self, framework: str, component_type: str) -> Optional[str]:
        for path in (self.docs_dir / framework / f"{component_type}.md", self.docs_dir / f"{framework}.md"):
            if path.is_file():
                return path.read_text(encoding="utf-8")[: self.max_chars]
        return None


class StaticProjectContext:
    """Project metadata supplied up front."""

    def __init__(self, project: Optional[Mapping[str, Any]] = None):
        self._project = dict(project or {})

    async def describe(self, request: GenerationRequest) -> dict[str, Any]:
        return dict(self._project)
