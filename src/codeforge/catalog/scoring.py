"""Use-case scoring and model recommendations."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from .catalog import Catalog
from .descriptors import ModelDescriptor, ProviderDescriptor

logger = logging.getLogger(__name__)


class ScoringWeights(BaseModel):
    """Bonus weights and thresholds for ``ModelScorer``.

    The defaults are empirical; callers may tune them per deployment.
    """

    best_for_tag: float = Field(default=0.3, description="Bonus per overlapping best-for tag")
    best_for_cap: float = Field(default=1.0, description="Cap on the summed best-for bonus")
    strength_tag: float = Field(default=0.2, description="Bonus per overlapping strength tag")
    strength_cap: float = Field(default=1.0, description="Cap on the summed strength bonus")
    vision: float = 0.3
    coding: float = 0.3
    function_calling: float = 0.2
    context_bonus_max: float = 0.3
    context_scale: int = Field(default=1_000_000, gt=0, description="Tokens worth one full point")
    budget_bonus_max: float = 0.3
    budget_price_scale: float = Field(default=10.0, gt=0)
    recommend_threshold: float = 0.7


class Recommendation(BaseModel):
    """One ranked model for a use case."""

    provider_id: str
    provider_name: str
    model: ModelDescriptor
    score: float
    reasons: list[str] = Field(default_factory=list)

    @property
    def reason(self) -> str:
        return "; ".join(self.reasons) if self.reasons else "General match"


def _overlaps(tag: str, use_case: str) -> bool:
    tag = tag.lower()
    return use_case in tag or tag in use_case


class ModelScorer:
    """Deterministic rule-based scorer for matching models to use-case text."""

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def score(self, model: ModelDescriptor, use_case: str) -> float:
        """Score ``model`` for ``use_case`` in [0, 1]."""
        return self._evaluate(model, use_case)[0]

    def explain(self, model: ModelDescriptor, use_case: str) -> list[str]:
        """List the reasons that contributed to a model's score."""
        return self._evaluate(model, use_case)[1]

    def _evaluate(self, model: ModelDescriptor, use_case: str) -> tuple[float, list[str]]:
        w = self.weights
        text = (use_case or "").strip().lower()
        caps = model.capabilities
        score = 0.0
        reasons: list[str] = []

        if text:
            matched = [tag for tag in model.best_for if _overlaps(tag, text)]
            if matched:
                score += min(w.best_for_tag * len(matched), w.best_for_cap)
                reasons.append(f"Best for {', '.join(matched)}")

            matched = [tag for tag in model.strengths if _overlaps(tag, text)]
            if matched:
                score += min(w.strength_tag * len(matched), w.strength_cap)
                reasons.append(f"Strong at {', '.join(matched)}")

        if "vision" in text and caps.vision:
            score += w.vision
            reasons.append("Supports vision")
        if "code" in text and caps.coding:
            score += w.coding
            reasons.append("Optimized for coding")
        if "function" in text and caps.function_calling:
            score += w.function_calling
            reasons.append("Supports function calling")
        if "large" in text or "context" in text:
            score += min(model.context_window / w.context_scale, w.context_bonus_max)
            reasons.append(f"{model.context_window:,} token context window")
        if ("budget" in text or "cheap" in text) and model.pricing is not None:
            bonus = max(0.0, w.budget_bonus_max - model.pricing.input / w.budget_price_scale)
            if bonus > 0:
                score += bonus
                reasons.append(f"${model.pricing.input}/1M input tokens")

        # Rounded so float noise (0.3 + 0.2 + 0.2) cannot cross a threshold.
        return round(min(max(score, 0.0), 1.0), 6), reasons

    def rank(
        self, catalog: Catalog, use_case: str
    ) -> list[tuple[ProviderDescriptor, ModelDescriptor, float]]:
        """Score every catalog model, best first; ties keep catalog order."""
        scored = [(p, m, self.score(m, use_case)) for p, m in catalog.iter_models()]
        return sorted(scored, key=lambda entry: entry[2], reverse=True)

    def recommend(self, catalog: Catalog, use_case: str, top_n: int = 5) -> list[Recommendation]:
        """Recommend up to ``top_n`` models scoring above the threshold."""
        threshold = self.weights.recommend_threshold
        results = [
            Recommendation(
                provider_id=provider.id,
                provider_name=provider.name,
                model=model,
                score=score,
                reasons=self.explain(model, use_case),
            )
            for provider, model, score in self.rank(catalog, use_case)
            if score > threshold
        ][: max(top_n, 0)]
        logger.debug(
            "Recommended %d model(s) for use case %r (threshold %.2f)", len(results), use_case, threshold
        )
        return results
