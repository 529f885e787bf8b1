"""Tests for the retry policy."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from codeforge.errors import RequestFailedError, ResponseParseError
from codeforge.llm.retry import RetryPolicy


def test_from_config_clamps_values(config):
    config.max_fallbacks = -1
    config.attempts_per_candidate = 0
    config.persist_attempts = 0

    policy = RetryPolicy.from_config(config)

    assert policy.max_fallbacks == 0
    assert policy.attempts_per_candidate == 1
    assert policy.persist_attempts == 1
    assert policy.candidate_limit() == 1


def test_backoff_grows_and_caps():
    policy = RetryPolicy(initial_wait=1.0, max_wait=4.0, jitter=0.0)

    assert [policy.backoff(n) for n in range(4)] == [1.0, 2.0, 4.0, 4.0]


def test_backoff_jitter_stays_in_band():
    policy = RetryPolicy(initial_wait=1.0, jitter=0.25)

    for _ in range(50):
        assert 0.75 <= policy.backoff(0) <= 1.25


def test_zero_initial_wait_disables_backoff():
    assert RetryPolicy(initial_wait=0.0).backoff(3) == 0.0


@pytest.mark.parametrize(
    "error, expected",
    [
        (RequestFailedError("x"), True),
        (RequestFailedError("x", retryable=False), False),
        (ResponseParseError("x"), True),
        (asyncio.TimeoutError(), True),
        (ValueError("x"), False),
    ],
)
def test_is_retryable(error, expected):
    assert RetryPolicy.is_retryable(error) is expected


@pytest.mark.asyncio
async def test_run_retries_until_success():
    sleep = AsyncMock()
    policy = RetryPolicy(initial_wait=0.5, jitter=0.0, sleep=sleep)
    fn = AsyncMock(side_effect=[OSError("disk"), OSError("disk"), "stored"])

    result = await policy.run(fn, attempts=3, what="Persist")

    assert result == "stored"
    assert fn.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_run_raises_last_error_when_exhausted(caplog):
    policy = RetryPolicy(initial_wait=0.0)
    fn = AsyncMock(side_effect=[OSError("first"), OSError("second")])

    with pytest.raises(OSError, match="second"):
        await policy.run(fn, attempts=2, what="Persist")

    assert "Persist failed. Retry 1/2" in caplog.text


@pytest.mark.asyncio
async def test_run_does_not_retry_unlisted_errors():
    policy = RetryPolicy(initial_wait=0.0)
    fn = AsyncMock(side_effect=KeyError("nope"))

    with pytest.raises(KeyError):
        await policy.run(fn, attempts=3, what="Lookup", retry_on=(OSError,))

    assert fn.await_count == 1
