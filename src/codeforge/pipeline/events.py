"""Pipeline stages, progress events and per-run bookkeeping."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from ..models import AttemptRecord, FailureRecord

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    IDLE = "idle"
    CONTEXT_BUILDING = "context_building"
    RETRIEVING = "retrieving"
    PROMPT_ASSEMBLY = "prompt_assembly"
    GENERATING = "generating"
    EXTRACTING = "extracting"
    REVIEWING = "reviewing"
    REGENERATING = "regenerating"
    OPTIMIZING = "optimizing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STAGES = frozenset({PipelineStage.DONE, PipelineStage.FAILED})


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted on every stage transition."""

    request_id: str
    stage: PipelineStage
    message: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


@dataclass
class PipelineRun:
    """State of one request moving through the pipeline.

    Created fresh per request; nothing here is shared between runs.
    """

    request_id: str
    on_event: Optional[EventCallback] = None
    stage: PipelineStage = PipelineStage.IDLE
    history: list[PipelineStage] = field(default_factory=list)
    attempts: list[AttemptRecord] = field(default_factory=list)
    failures: list[FailureRecord] = field(default_factory=list)

    async def advance(self, stage: PipelineStage, message: str = "") -> None:
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f"Run {self.request_id} already finished in stage {self.stage.value}")
        self.stage = stage
        self.history.append(stage)
        logger.debug("[%s] -> %s %s", self.request_id[:8], stage.value, message)
        await self._emit(ProgressEvent(self.request_id, stage, message))

    async def fail(self, error: BaseException) -> None:
        self.record_failure(error)
        if self.stage not in TERMINAL_STAGES:
            await self.advance(PipelineStage.FAILED, str(error))

    def record_attempt(
        self, provider_id: str, model_id: str, error: Optional[BaseException] = None
    ) -> None:
        self.attempts.append(AttemptRecord(
            provider_id=provider_id,
            model_id=model_id,
            outcome="failed" if error is not None else "success",
            error=f"{type(error).__name__}: {error}" if error is not None else None,
        ))

    def record_failure(self, error: BaseException, stage: Optional[PipelineStage] = None) -> None:
        self.failures.append(FailureRecord(
            stage=(stage or self.stage).value,
            error_type=type(error).__name__,
            message=str(error),
        ))

    async def _emit(self, event: ProgressEvent) -> None:
        if self.on_event is None:
            return
        try:
            result: Any = self.on_event(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            # Progress reporting must never stop the run
            logger.warning("Progress callback failed at %s: %s", event.stage.value, e)
