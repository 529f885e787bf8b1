"""Generation pipeline: context, prompts, extraction, review and orchestration."""

from .collaborators import ArtifactStore, DocumentationSource, ProjectContextSource, SimilaritySearch
from .context import ContextBuilder, ContextDraft
from .events import PipelineRun, PipelineStage, ProgressEvent
from .extraction import analyze_prompt, extract_code, extract_dependencies, validate_artifact
from .optimizer import ArtifactOptimizer
from .orchestrator import BatchResult, GenerationOrchestrator
from .prompt_builder import PromptBuilder
from .reviewer import ProviderReviewer, Reviewer, StaticReviewer

__all__ = [
    "ArtifactStore",
    "DocumentationSource",
    "ProjectContextSource",
    "SimilaritySearch",
    "ContextBuilder",
    "ContextDraft",
    "PipelineRun",
    "PipelineStage",
    "ProgressEvent",
    "analyze_prompt",
    "extract_code",
    "extract_dependencies",
    "validate_artifact",
    "ArtifactOptimizer",
    "BatchResult",
    "GenerationOrchestrator",
    "PromptBuilder",
    "ProviderReviewer",
    "Reviewer",
    "StaticReviewer",
]
