"""Tests for pipeline stage tracking."""

import logging

import pytest

from codeforge.errors import RequestFailedError
from codeforge.pipeline.events import PipelineRun, PipelineStage


@pytest.mark.asyncio
async def test_advance_records_history_and_emits_events():
    events = []
    run = PipelineRun("req-1", on_event=events.append)

    await run.advance(PipelineStage.CONTEXT_BUILDING)
    await run.advance(PipelineStage.GENERATING, "alpha/alpha-1")

    assert run.stage == PipelineStage.GENERATING
    assert run.history == [PipelineStage.CONTEXT_BUILDING, PipelineStage.GENERATING]
    assert [(e.request_id, e.stage, e.message) for e in events] == [
        ("req-1", PipelineStage.CONTEXT_BUILDING, ""),
        ("req-1", PipelineStage.GENERATING, "alpha/alpha-1"),
    ]


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited():
    seen = []

    async def on_event(event):
        seen.append(event.stage)

    run = PipelineRun("req", on_event=on_event)
    await run.advance(PipelineStage.DONE)

    assert seen == [PipelineStage.DONE]


@pytest.mark.asyncio
async def test_terminal_stage_cannot_advance():
    run = PipelineRun("req")
    await run.advance(PipelineStage.DONE)

    with pytest.raises(RuntimeError, match="already finished"):
        await run.advance(PipelineStage.GENERATING)


@pytest.mark.asyncio
async def test_fail_records_failure_at_current_stage():
    run = PipelineRun("req")
    await run.advance(PipelineStage.GENERATING)

    await run.fail(RequestFailedError("upstream down"))

    assert run.stage == PipelineStage.FAILED
    assert run.failures[0].stage == "generating"
    assert run.failures[0].error_type == "RequestFailedError"


@pytest.mark.asyncio
async def test_fail_after_terminal_only_records():
    run = PipelineRun("req")
    await run.advance(PipelineStage.DONE)

    await run.fail(ValueError("late"))

    assert run.stage == PipelineStage.DONE
    assert len(run.failures) == 1


@pytest.mark.asyncio
async def test_callback_errors_do_not_stop_the_run(caplog):
    def broken(event):
        raise ValueError("listener bug")

    run = PipelineRun("req", on_event=broken)
    with caplog.at_level(logging.WARNING):
        await run.advance(PipelineStage.REVIEWING)

    assert run.stage == PipelineStage.REVIEWING
    assert "Progress callback failed at reviewing" in caplog.text


def test_record_attempt_outcomes():
    run = PipelineRun("req")

    run.record_attempt("alpha", "alpha-1", RequestFailedError("timeout"))
    run.record_attempt("beta", "beta-1")

    assert [(a.provider_id, a.outcome) for a in run.attempts] == [("alpha", "failed"), ("beta", "success")]
    assert run.attempts[0].error == "RequestFailedError: timeout"
    assert run.attempts[1].error is None


def test_record_failure_with_explicit_stage():
    run = PipelineRun("req")

    run.record_failure(OSError("disk full"), PipelineStage.PERSISTING)

    assert run.failures[0].stage == "persisting"
    assert run.failures[0].message == "disk full"


def test_stage_values_are_strings():
    assert PipelineStage.CONTEXT_BUILDING == "context_building"
