"""Generation pipeline orchestrator.

Drives a request through context building, retrieval, prompt assembly,
generation with fallback, extraction, review (with bounded regeneration),
optimization and persistence. Each request gets its own ``PipelineRun``;
the only state shared between requests is the provider registry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Optional
from uuid import uuid4

from ..config import Config
from ..errors import (
    CodeforgeError,
    CredentialMissingError,
    PersistFailedError,
    RegenerationBudgetExhausted,
    RequestFailedError,
    ResponseParseError,
    StageFailedError,
    StreamCancelledError,
)
from ..llm.prompts import TEMPLATE_VERSION
from ..llm.provider import GenerationOptions, LLMResponse, ProviderAdapter
from ..llm.retry import RetryPolicy
from ..llm.token_estimator import TokenEstimator
from ..models import (
    ArtifactMetadata,
    GeneratedArtifact,
    GenerationContext,
    GenerationRequest,
    PromptAnalysis,
    ReviewResult,
    ValidationReport,
)
from ..observability import trace_function
from ..registry import Candidate, ProviderRegistry
from ..streaming import ChunkCallback, StreamCoordinator
from .collaborators import ArtifactStore, DocumentationSource, ProjectContextSource, SimilaritySearch
from .context import DEFAULT_FRAMEWORK, ContextBuilder, ContextDraft
from .events import EventCallback, PipelineRun, PipelineStage
from .extraction import (
    analyze_prompt,
    extract_accessibility_features,
    extract_code,
    extract_dependencies,
    extract_tags,
    infer_category,
    infer_component_type,
    infer_framework,
    validate_artifact,
)
from .optimizer import ArtifactOptimizer
from .prompt_builder import PromptBuilder
from .reviewer import ProviderReviewer, Reviewer, StaticReviewer

logger = logging.getLogger(__name__)

VARIATION_TEMPERATURE_STEP = 0.1
MAX_TEMPERATURE = 1.0


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one request in a batch: the artifact, or the error that stopped it."""

    request: GenerationRequest
    artifact: Optional[GeneratedArtifact] = None
    error: Optional[CodeforgeError] = None

    @property
    def ok(self) -> bool:
        return self.artifact is not None


@dataclass(frozen=True)
class _Prepared:
    """Everything the generating stage needs from the earlier stages."""

    context: GenerationContext
    prompt: str
    system: Optional[str] = None
    component_type: Optional[str] = None


class GenerationOrchestrator:
    """Turns a GenerationRequest into a reviewed, optimized and stored artifact.

    Args:
        registry: Source of generation candidates
        config: Timeouts, thresholds and budgets
        similarity: Optional similarity-search collaborator
        documentation: Optional documentation collaborator
        store: Optional artifact store; persistence is skipped without one
        project: Optional project-context collaborator
        reviewer: Defaults to StaticReviewer, or ProviderReviewer when
            ``config.review_mode == "provider"``
        policy: Retry/fallback policy; defaults to one built from config
        token_estimator: Optional prompt token estimator
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: Optional[Config] = None,
        similarity: Optional[SimilaritySearch] = None,
        documentation: Optional[DocumentationSource] = None,
        store: Optional[ArtifactStore] = None,
        project: Optional[ProjectContextSource] = None,
        reviewer: Optional[Reviewer] = None,
        optimizer: Optional[ArtifactOptimizer] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        policy: Optional[RetryPolicy] = None,
        token_estimator: Optional[TokenEstimator] = None,
    ):
        self.registry = registry
        self.config = config or registry.config
        self.store = store
        self.context_builder = ContextBuilder(
            similarity=similarity,
            documentation=documentation,
            store=store,
            project=project,
            timeout=self.config.retrieval_timeout,
            max_similar=self.config.max_similar,
        )
        self.prompt_builder = prompt_builder or PromptBuilder(TEMPLATE_VERSION)
        self.reviewer = reviewer or self._default_reviewer()
        self.optimizer = optimizer or ArtifactOptimizer()
        self.policy = policy or RetryPolicy.from_config(self.config)
        self.token_estimator = token_estimator
        self.streams = StreamCoordinator(chunk_timeout=self.config.request_timeout)

    def _default_reviewer(self) -> Reviewer:
        if self.config.review_mode == "provider":
            return ProviderReviewer(self._active_target, timeout=self.config.request_timeout)
        return StaticReviewer()

    def _active_target(self) -> Candidate:
        """The active provider/model pair with its live adapter."""
        active = self.registry.active
        if active is None:
            raise CredentialMissingError(self.config.default_provider)
        return Candidate(active[0], active[1], self.registry.get_adapter(active[0]))

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @trace_function(name="codeforge_generate")
    async def generate(
        self, request: GenerationRequest, on_event: Optional[EventCallback] = None
    ) -> GeneratedArtifact:
        """Run the full pipeline for ``request``.

        Returns:
            The best artifact produced. Below-threshold results and persistence
            failures are reported on ``artifact.metadata``, not raised.

        Raises:
            CredentialMissingError: If no provider has a live adapter
            StageFailedError: If a stage exhausts its retry/fallback budget
        """
        run = PipelineRun(request.request_id, on_event)
        return await self._guarded(run, self._generate(request, run))

    async def generate_stream(
        self,
        request: GenerationRequest,
        on_chunk: ChunkCallback,
        on_event: Optional[EventCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedArtifact:
        """Like ``generate`` but streams the generating stage into ``on_chunk``.

        The last chunk passed to ``on_chunk`` has ``done=True``. Fallback to
        another candidate only happens before the first chunk arrives, and
        streamed runs are never regenerated.

        Raises:
            StreamCancelledError: If ``cancel_event`` is set mid-stream
        """
        run = PipelineRun(request.request_id, on_event)
        return await self._guarded(run, self._generate_stream(request, run, on_chunk, cancel_event))

    async def generate_variations(
        self,
        request: GenerationRequest,
        count: int = 3,
        on_event: Optional[EventCallback] = None,
    ) -> list[GeneratedArtifact]:
        """Run ``count`` independent generations with varied prompts and temperature."""
        if count < 1:
            raise ValueError("count must be at least 1")
        base = request.temperature if request.temperature is not None else self.config.temperature
        requests = [
            request.model_copy(update={
                "prompt": f"{request.prompt} {self.prompt_builder.variation_instruction(index)}",
                "temperature": min(MAX_TEMPERATURE, base + VARIATION_TEMPERATURE_STEP * index),
                "request_id": uuid4().hex,
            })
            for index in range(count)
        ]
        logger.info("Generating %d variation(s) for %s", count, request.request_id[:8])
        return list(await asyncio.gather(*(self.generate(r, on_event) for r in requests)))

    async def generate_batch(
        self,
        requests: list[GenerationRequest],
        on_event: Optional[EventCallback] = None,
    ) -> list[BatchResult]:
        """Generate each request in turn; a failed item does not stop the batch.

        Returns:
            One BatchResult per request, in request order.
        """
        results: list[BatchResult] = []
        for index, request in enumerate(requests, start=1):
            logger.info("Batch item %d/%d (%s)", index, len(requests), request.request_id[:8])
            try:
                artifact = await self.generate(request, on_event)
            except CodeforgeError as e:
                logger.warning("Batch item %d failed: %s", index, e)
                results.append(BatchResult(request, error=e))
                continue
            results.append(BatchResult(request, artifact=artifact))

        succeeded = sum(1 for result in results if result.ok)
        logger.info("Batch complete: %d/%d succeeded", succeeded, len(requests))
        return results

    async def translate(
        self,
        artifact: GeneratedArtifact,
        target_framework: str,
        on_event: Optional[EventCallback] = None,
    ) -> GeneratedArtifact:
        """Regenerate ``artifact`` for ``target_framework``, keeping its behavior."""
        source_framework = artifact.framework or DEFAULT_FRAMEWORK
        prompt = self.prompt_builder.build_translation_prompt(artifact.body, source_framework, target_framework)
        refs = [artifact.metadata.artifact_id] if artifact.metadata.artifact_id else []
        request = GenerationRequest(
            prompt=prompt,
            framework=target_framework,
            category=artifact.category,
            context_refs=refs,
            use_case="coding",
        )
        prepared = _Prepared(
            context=GenerationContext(),
            prompt=prompt,
            component_type=artifact.component_type,
        )
        logger.info("Translating artifact from %s to %s", source_framework, target_framework)
        run = PipelineRun(request.request_id, on_event)
        return await self._guarded(run, self._generate(request, run, prepared))

    @staticmethod
    def analyze_prompt(prompt: str) -> PromptAnalysis:
        return analyze_prompt(prompt)

    @staticmethod
    def validate_artifact(artifact: GeneratedArtifact) -> ValidationReport:
        return validate_artifact(artifact.body, artifact.framework)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    async def _guarded(run: PipelineRun, work: Awaitable[GeneratedArtifact]) -> GeneratedArtifact:
        """Move the run to FAILED on error; unexpected errors become StageFailedError."""
        try:
            return await work
        except CodeforgeError as e:
            await run.fail(e)
            raise
        except Exception as e:
            wrapped = StageFailedError(run.stage, e)
            await run.fail(wrapped)
            raise wrapped from e

    async def _generate(
        self, request: GenerationRequest, run: PipelineRun, prepared: Optional[_Prepared] = None
    ) -> GeneratedArtifact:
        if prepared is None:
            prepared = await self._prepare(request, run)
        options = self._options(request, prepared.system)
        candidates = self._candidates(request)

        await run.advance(PipelineStage.GENERATING)
        response, candidate = await self._call_candidates(candidates, prepared.prompt, options, run)

        await run.advance(PipelineStage.EXTRACTING)
        artifact = self._extract(request, prepared, response, candidate)

        await run.advance(PipelineStage.REVIEWING)
        review = await self._review(artifact, prepared.context)
        artifact, review = await self._regenerate(
            request, prepared, options, candidates, run, artifact, review
        )
        return await self._finish(artifact, review, run)

    async def _generate_stream(
        self,
        request: GenerationRequest,
        run: PipelineRun,
        on_chunk: ChunkCallback,
        cancel_event: Optional[asyncio.Event],
    ) -> GeneratedArtifact:
        prepared = await self._prepare(request, run)
        options = self._options(request, prepared.system)
        candidates = self._candidates(request)

        await run.advance(PipelineStage.GENERATING, "streaming")
        response, candidate, emulated = await self._stream_candidates(
            candidates, prepared.prompt, options, on_chunk, cancel_event, run
        )

        await run.advance(PipelineStage.EXTRACTING)
        artifact = self._extract(request, prepared, response, candidate)
        artifact.metadata.emulated_stream = emulated

        await run.advance(PipelineStage.REVIEWING)
        review = await self._review(artifact, prepared.context)
        self._flag_below_threshold(artifact, review, run)
        return await self._finish(artifact, review, run)

    async def _prepare(self, request: GenerationRequest, run: PipelineRun) -> _Prepared:
        draft = ContextDraft()
        await run.advance(PipelineStage.CONTEXT_BUILDING)
        await self.context_builder.build_project_context(request, draft)

        await run.advance(PipelineStage.RETRIEVING)
        await self.context_builder.retrieve(request, draft)
        context = draft.freeze()
        if context.degraded:
            logger.info("Context degraded for %s: %s", request.request_id[:8], ", ".join(context.degraded))

        await run.advance(PipelineStage.PROMPT_ASSEMBLY)
        return _Prepared(
            context=context,
            prompt=self.prompt_builder.build_prompt(request, context),
            system=self.prompt_builder.build_system_prompt(request, context),
        )

    def _options(self, request: GenerationRequest, system: Optional[str]) -> GenerationOptions:
        return GenerationOptions(
            temperature=request.temperature if request.temperature is not None else self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            timeout=self.config.request_timeout,
            system=system,
        )

    def _candidates(self, request: GenerationRequest) -> list[Candidate]:
        use_case = request.use_case or request.prompt
        candidates = self.registry.generation_candidates(use_case, self.policy.max_fallbacks)
        if not candidates:
            active = self.registry.active
            raise CredentialMissingError(active[0] if active else self.config.default_provider)
        return candidates

    async def _call(self, candidate: Candidate, prompt: str, options: GenerationOptions) -> LLMResponse:
        timeout = options.timeout or self.config.request_timeout
        try:
            response = await asyncio.wait_for(candidate.adapter.generate(prompt, options), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RequestFailedError(
                f"{candidate.provider_id}/{candidate.model_id} timed out after {timeout}s",
                provider_id=candidate.provider_id,
            ) from e
        if not response.content or not response.content.strip():
            raise ResponseParseError("Empty response content", provider_id=candidate.provider_id)
        return response

    async def _call_candidates(
        self,
        candidates: list[Candidate],
        prompt: str,
        options: GenerationOptions,
        run: PipelineRun,
    ) -> tuple[LLMResponse, Candidate]:
        """Try each candidate in order, retrying retryable failures in place.

        Raises:
            StageFailedError: When every candidate has failed
        """
        last_error: Optional[BaseException] = None
        attempts = self.policy.attempts_per_candidate
        for candidate in candidates:
            label = f"{candidate.provider_id}/{candidate.model_id}"
            call_options = options.model_copy(update={"model": candidate.model_id})
            for attempt in range(attempts):
                try:
                    response = await self._call(candidate, prompt, call_options)
                except (RequestFailedError, ResponseParseError) as e:
                    run.record_attempt(candidate.provider_id, candidate.model_id, e)
                    last_error = e
                    if isinstance(e, ResponseParseError) or not self.policy.is_retryable(e):
                        break
                    if attempt + 1 < attempts:
                        await self.policy.wait(attempt, attempts, label)
                    continue
                run.record_attempt(candidate.provider_id, candidate.model_id)
                logger.info("Generated with %s", label)
                return response, candidate
            logger.warning("%s failed, moving to next candidate: %s", label, last_error)

        raise StageFailedError(PipelineStage.GENERATING, last_error)

    async def _stream_candidates(
        self,
        candidates: list[Candidate],
        prompt: str,
        options: GenerationOptions,
        on_chunk: ChunkCallback,
        cancel_event: Optional[asyncio.Event],
        run: PipelineRun,
    ) -> tuple[LLMResponse, Candidate, bool]:
        last_error: Optional[BaseException] = None
        for candidate in candidates:
            call_options = options.model_copy(update={"model": candidate.model_id})
            stream = self.streams.open(candidate.adapter, prompt, call_options, cancel_event)
            try:
                text = await self.streams.deliver(stream, on_chunk)
            except StreamCancelledError as e:
                run.record_attempt(candidate.provider_id, candidate.model_id, e)
                raise
            except (RequestFailedError, ResponseParseError) as e:
                run.record_attempt(candidate.provider_id, candidate.model_id, e)
                last_error = e
                if stream.chunks_delivered:
                    # Output already reached the caller
                    raise StageFailedError(PipelineStage.GENERATING, e) from e
                logger.warning(
                    "%s/%s stream failed before any output, moving to next candidate: %s",
                    candidate.provider_id, candidate.model_id, e,
                )
                continue

            if not text.strip():
                error = ResponseParseError("Empty stream", provider_id=candidate.provider_id)
                run.record_attempt(candidate.provider_id, candidate.model_id, error)
                raise StageFailedError(PipelineStage.GENERATING, error)

            run.record_attempt(candidate.provider_id, candidate.model_id)
            response = LLMResponse(content=text, model=candidate.model_id, provider_id=candidate.provider_id)
            return response, candidate, stream.emulated

        raise StageFailedError(PipelineStage.GENERATING, last_error)

    def _extract(
        self,
        request: GenerationRequest,
        prepared: _Prepared,
        response: LLMResponse,
        candidate: Candidate,
    ) -> GeneratedArtifact:
        body = extract_code(response.content)
        framework = request.framework or infer_framework(request.prompt) or DEFAULT_FRAMEWORK
        metadata = ArtifactMetadata(
            request_id=request.request_id,
            provider_id=candidate.provider_id,
            model_id=candidate.model_id,
            context_refs=list(request.context_refs),
            template_version=self.prompt_builder.template_version,
            tokens_used=response.tokens_used,
        )
        if self.token_estimator is not None:
            messages = ProviderAdapter.build_messages(prepared.prompt, prepared.system)
            metadata.prompt_tokens_estimate = self.token_estimator.estimate(messages, candidate.model_id)

        return GeneratedArtifact(
            body=body,
            framework=framework,
            category=request.category or infer_category(request.prompt),
            component_type=prepared.component_type or infer_component_type(request.prompt),
            tags=extract_tags(body, request),
            dependencies=extract_dependencies(body, framework),
            metadata=metadata,
        )

    async def _review(self, artifact: GeneratedArtifact, context: GenerationContext) -> ReviewResult:
        review = await self.reviewer.review(artifact.body, context, artifact.framework)
        if review.scored:
            logger.info("Review score %.1f (%d issue(s))", review.overall_score or 0.0, len(review.issues))
        else:
            logger.info("Artifact left unscored: %s", review.note)
        return review

    def _below_threshold(self, review: ReviewResult) -> bool:
        return (
            review.scored
            and review.overall_score is not None
            and review.overall_score < self.config.acceptance_threshold
        )

    async def _regenerate(
        self,
        request: GenerationRequest,
        prepared: _Prepared,
        options: GenerationOptions,
        candidates: list[Candidate],
        run: PipelineRun,
        artifact: GeneratedArtifact,
        review: ReviewResult,
    ) -> tuple[GeneratedArtifact, ReviewResult]:
        """Regenerate while the best score is below threshold and budget remains.

        Each attempt amends the base prompt with the issues of the previous
        attempt. The best-scoring artifact wins; ties keep the earlier one.
        """
        threshold = self.config.acceptance_threshold
        budget = max(0, self.config.regeneration_budget)
        best, best_review, last_review = artifact, review, review
        regenerations = 0

        while self._below_threshold(best_review) and regenerations < budget:
            regenerations += 1
            await run.advance(
                PipelineStage.REGENERATING,
                f"score {best_review.overall_score} below {threshold} ({regenerations}/{budget})",
            )
            prompt = self.prompt_builder.build_regeneration_prompt(prepared.prompt, last_review, threshold)

            await run.advance(PipelineStage.GENERATING)
            try:
                response, candidate = await self._call_candidates(candidates, prompt, options, run)
            except StageFailedError as e:
                logger.warning("Regeneration %d failed, keeping best attempt: %s", regenerations, e)
                run.record_failure(e, PipelineStage.REGENERATING)
                break

            await run.advance(PipelineStage.EXTRACTING)
            attempt = self._extract(request, prepared, response, candidate)

            await run.advance(PipelineStage.REVIEWING)
            last_review = await self._review(attempt, prepared.context)
            if last_review.scored and (last_review.overall_score or 0.0) > (best_review.overall_score or 0.0):
                best, best_review = attempt, last_review

        best.metadata.regenerations = regenerations
        self._flag_below_threshold(best, best_review, run)
        return best, best_review

    def _flag_below_threshold(self, artifact: GeneratedArtifact, review: ReviewResult, run: PipelineRun) -> None:
        if not self._below_threshold(review):
            return
        artifact.metadata.below_threshold = True
        error = RegenerationBudgetExhausted(review.overall_score, self.config.acceptance_threshold)
        run.record_failure(error, PipelineStage.REVIEWING)
        logger.warning("%s", error)

    async def _finish(self, artifact: GeneratedArtifact, review: ReviewResult, run: PipelineRun) -> GeneratedArtifact:
        artifact.quality_score = review.overall_score if review.scored else None
        artifact.metadata.review = review

        await run.advance(PipelineStage.OPTIMIZING)
        result = self.optimizer.optimize(artifact.body, artifact.framework)
        artifact.body = result.code
        artifact.metadata.applied_optimizations = list(result.applied)
        artifact.metadata.accessibility_features = extract_accessibility_features(artifact.body)

        self._sync_metadata(artifact, run)
        if self.store is not None:
            await run.advance(PipelineStage.PERSISTING)
            await self._persist(artifact, run)
            self._sync_metadata(artifact, run)

        await run.advance(PipelineStage.DONE)
        return artifact

    async def _persist(self, artifact: GeneratedArtifact, run: PipelineRun) -> None:
        attempts = self.policy.persist_attempts
        snapshot = artifact.snapshot()
        try:
            artifact_id = await self.policy.run(lambda: self.store.store(snapshot), attempts=attempts, what="Persist")
        except Exception as e:
            error = PersistFailedError(f"Failed to persist artifact after {attempts} attempt(s): {e}", artifact)
            logger.error("%s", error)
            run.record_failure(error)
            artifact.metadata.persisted = False
            return
        artifact.metadata.artifact_id = artifact_id
        artifact.metadata.persisted = True
        logger.info("Persisted artifact %s", artifact_id)

    @staticmethod
    def _sync_metadata(artifact: GeneratedArtifact, run: PipelineRun) -> None:
        artifact.metadata.attempts = list(run.attempts)
        artifact.metadata.failures = list(run.failures)
