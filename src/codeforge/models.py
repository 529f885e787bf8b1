"""Data models for generation requests, context, artifacts and reviews."""

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationRequirements(BaseModel):
    """Structured requirements attached to a request."""

    model_config = ConfigDict(extra="allow")

    typescript: bool = True
    accessibility: Literal["WCAG A", "WCAG AA", "WCAG AAA"] = "WCAG AA"
    responsive: bool = True
    animations: bool = False
    features: list[str] = Field(default_factory=list)
    data_source: Optional[str] = None
    design_system: Optional[str] = None


class GenerationRequest(BaseModel):
    """A natural-language generation request."""

    prompt: str = Field(min_length=1, description="Task text")
    framework: Optional[str] = Field(default=None, description="Framework hint, e.g. 'react'")
    category: Optional[str] = Field(default=None, description="Category hint, e.g. 'Forms & Inputs'")
    requirements: Optional[GenerationRequirements] = None
    context_refs: list[str] = Field(
        default_factory=list, description="Ids of prior artifacts to use as context"
    )
    use_case: Optional[str] = Field(
        default=None, description="Use-case text for ranking fallback models"
    )
    temperature: Optional[float] = None
    request_id: str = Field(default_factory=lambda: uuid4().hex)


class RetrievedItem(BaseModel):
    """A ranked result from the similarity-search collaborator."""

    id: str
    score: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)


class GenerationContext(BaseModel):
    """Read-only bundle assembled for prompt construction, one per request."""

    model_config = ConfigDict(frozen=True)

    similar: tuple[RetrievedItem, ...] = ()
    documentation: tuple[str, ...] = ()
    code_patterns: tuple[str, ...] = ()
    project: dict[str, Any] = Field(default_factory=dict)
    degraded: tuple[str, ...] = Field(
        default=(), description="Sources that failed or timed out and were left empty"
    )

    @property
    def is_empty(self) -> bool:
        return not (self.similar or self.documentation or self.code_patterns or self.project)


Severity = Literal["error", "warning", "info"]
MetricName = Literal["maintainability", "reliability", "security", "performance"]


class ReviewIssue(BaseModel):
    """A single review finding."""

    severity: Severity
    metric: MetricName = "maintainability"
    rule: str = ""
    description: str
    fix: Optional[str] = None
    line: Optional[int] = None


class ReviewMetrics(BaseModel):
    """Metric scores as percentages."""

    maintainability: float = Field(default=100.0, ge=0, le=100)
    reliability: float = Field(default=100.0, ge=0, le=100)
    security: float = Field(default=100.0, ge=0, le=100)
    performance: float = Field(default=100.0, ge=0, le=100)

    def overall(self, weights: Optional[dict[str, float]] = None) -> float:
        """Unweighted mean of the metrics, or the normalized weighted mean."""
        values = self.model_dump()
        if not weights:
            return round(sum(values.values()) / len(values), 2)

        total = sum(max(weights.get(name, 0.0), 0.0) for name in values)
        if total <= 0:
            raise ValueError("Review weights must include at least one positive metric weight")
        weighted = sum(values[name] * max(weights.get(name, 0.0), 0.0) for name in values)
        return round(weighted / total, 2)


class ReviewResult(BaseModel):
    """Outcome of reviewing one artifact version."""

    issues: list[ReviewIssue] = Field(default_factory=list)
    positives: list[str] = Field(default_factory=list)
    metrics: Optional[ReviewMetrics] = None
    overall_score: Optional[float] = None
    scored: bool = True
    reviewer: str = "static"
    note: Optional[str] = None

    @classmethod
    def from_metrics(
        cls,
        issues: list[ReviewIssue],
        positives: list[str],
        metrics: ReviewMetrics,
        weights: Optional[dict[str, float]] = None,
        reviewer: str = "static",
    ) -> "ReviewResult":
        return cls(
            issues=issues,
            positives=positives,
            metrics=metrics,
            overall_score=metrics.overall(weights),
            reviewer=reviewer,
        )

    @classmethod
    def unscored(cls, reason: str, reviewer: str = "provider") -> "ReviewResult":
        return cls(scored=False, reviewer=reviewer, note=reason)

    @property
    def passed(self) -> bool:
        return self.scored and not any(issue.severity == "error" for issue in self.issues)


class AttemptRecord(BaseModel):
    """One adapter call made while generating."""

    provider_id: str
    model_id: str
    outcome: Literal["success", "failed"]
    error: Optional[str] = None


class FailureRecord(BaseModel):
    """A non-fatal failure absorbed during a run."""

    stage: str
    error_type: str
    message: str


class ArtifactMetadata(BaseModel):
    """Provenance and processing details for an artifact."""

    generated_at: datetime = Field(default_factory=_utcnow)
    request_id: Optional[str] = None
    provider_id: str
    model_id: str
    attempts: list[AttemptRecord] = Field(default_factory=list)
    context_refs: list[str] = Field(default_factory=list)
    template_version: Optional[str] = None
    applied_optimizations: list[str] = Field(default_factory=list)
    accessibility_features: list[str] = Field(default_factory=list)
    review: Optional[ReviewResult] = None
    regenerations: int = 0
    below_threshold: bool = False
    emulated_stream: bool = False
    tokens_used: Optional[int] = None
    prompt_tokens_estimate: Optional[int] = None
    artifact_id: Optional[str] = None
    persisted: bool = False
    failures: list[FailureRecord] = Field(default_factory=list)


class GeneratedArtifact(BaseModel):
    """Extracted output of a pipeline run."""

    body: str
    framework: Optional[str] = None
    category: Optional[str] = None
    component_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    quality_score: Optional[float] = None
    metadata: ArtifactMetadata

    def snapshot(self) -> "GeneratedArtifact":
        """Deep copy handed to storage so later mutation cannot leak into it."""
        return self.model_copy(deep=True)


class PromptAnalysis(BaseModel):
    """What a free-form prompt appears to ask for."""

    framework: Optional[str] = None
    category: str
    component_type: str
    features: list[str] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """Structural checks on an artifact body."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
