"""Prompt token estimation recorded on artifact metadata."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

import litellm

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


@runtime_checkable
class TokenEstimator(Protocol):
    """Sizes a chat message list for a given model."""

    def estimate(self, messages: list[dict], model: str) -> int:
        ...


def approximate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Length-based estimate, never below one token."""
    return max(1, len(text) // chars_per_token)


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(block.get("text", "") for block in content if isinstance(block, dict))
    return ""


class LiteLLMTokenEstimator:
    """Counts with the model's own tokenizer through ``litellm.token_counter``.

    A model whose tokenizer fails once is remembered and approximated by
    message length from then on.
    """

    def __init__(self, chars_per_token: int = CHARS_PER_TOKEN):
        self.chars_per_token = chars_per_token
        self._unsupported: set[str] = set()

    def estimate(self, messages: list[dict], model: str) -> int:
        if model not in self._unsupported:
            try:
                return litellm.token_counter(model=model, messages=messages)
            except Exception as e:
                self._unsupported.add(model)
                logger.debug("No tokenizer for %s (%s), approximating by length", model, e)
        text = "".join(_content_text(m.get("content")) for m in messages)
        return approximate_tokens(text, self.chars_per_token)

    def estimate_prompt(self, prompt: str, model: str, system: Optional[str] = None) -> int:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        return self.estimate(messages, model)
