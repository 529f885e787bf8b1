"""Tests for token estimation."""

from unittest.mock import patch

from codeforge.llm.token_estimator import LiteLLMTokenEstimator, TokenEstimator, approximate_tokens


def test_satisfies_protocol():
    assert isinstance(LiteLLMTokenEstimator(), TokenEstimator)


@patch("codeforge.llm.token_estimator.litellm.token_counter", return_value=17)
def test_estimate_uses_litellm(mock_counter):
    messages = [{"role": "user", "content": "Build a button"}]

    assert LiteLLMTokenEstimator().estimate(messages, "gpt-4") == 17
    mock_counter.assert_called_once_with(model="gpt-4", messages=messages)


@patch("codeforge.llm.token_estimator.litellm.token_counter", side_effect=ValueError("unknown model"))
def test_estimate_falls_back_to_characters(mock_counter):
    messages = [{"role": "system", "content": "x" * 20}, {"role": "user", "content": "y" * 20}]

    assert LiteLLMTokenEstimator().estimate(messages, "mystery-model") == 10


@patch("codeforge.llm.token_estimator.litellm.token_counter", side_effect=ValueError("unknown model"))
def test_fallback_is_at_least_one(mock_counter):
    assert LiteLLMTokenEstimator().estimate([{"role": "user", "content": "hi"}], "m") == 1


@patch("codeforge.llm.token_estimator.litellm.token_counter", return_value=5)
def test_estimate_prompt_builds_messages(mock_counter):
    LiteLLMTokenEstimator().estimate_prompt("Build", "gpt-4", system="Be brief")

    assert mock_counter.call_args.kwargs["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Build"},
    ]


def test_unsupported_model_is_not_retried():
    estimator = LiteLLMTokenEstimator()
    messages = [{"role": "user", "content": "z" * 12}]

    with patch("codeforge.llm.token_estimator.litellm.token_counter", side_effect=KeyError("m")) as mock_counter:
        assert estimator.estimate(messages, "local-model") == 3
        assert estimator.estimate(messages, "local-model") == 3

    assert mock_counter.call_count == 1


@patch("codeforge.llm.token_estimator.litellm.token_counter", side_effect=ValueError("unknown model"))
def test_fallback_reads_content_blocks(mock_counter):
    messages = [{"role": "user", "content": [{"type": "text", "text": "a" * 8}, {"type": "image"}]}]

    assert LiteLLMTokenEstimator(chars_per_token=2).estimate(messages, "m") == 4


def test_approximate_tokens():
    assert approximate_tokens("") == 1
    assert approximate_tokens("abcdefgh") == 2
