"""Deterministic post-review rewrites of artifact bodies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Optimization:
    name: str
    transform: Callable[[str], str]
    frameworks: Optional[frozenset[str]] = None

    def applies_to(self, framework: Optional[str]) -> bool:
        return self.frameworks is None or (framework or "").lower() in self.frameworks


@dataclass
class OptimizationResult:
    code: str
    applied: list[str] = field(default_factory=list)


def _lazy_images(code: str) -> str:
    return re.sub(r"<img\b(?![^>]*\bloading=)", '<img loading="lazy"', code)


def _safe_blank_targets(code: str) -> str:
    return re.sub(
        r'target="_blank"(?![^>]*\brel=)',
        'target="_blank" rel="noopener noreferrer"',
        code,
    )


def _label_empty_buttons(code: str) -> str:
    return re.sub(
        r"<button((?:(?!aria-label)[^>])*)>\s*</button>",
        r'<button\1 aria-label="Button"></button>',
        code,
    )


def _strip_debug_statements(code: str) -> str:
    return re.sub(r"^[ \t]*(?:console\.(?:log|debug)\(.*\);?|debugger;?)[ \t]*\n", "", code, flags=re.MULTILINE)


def _track_by(code: str) -> str:
    return re.sub(
        r'\*ngFor="let (\w+) of (\w+)"',
        r'*ngFor="let \1 of \2; trackBy: trackBy\2"',
        code,
    )


def _normalize_whitespace(code: str) -> str:
    code = re.sub(r"[ \t]+$", "", code, flags=re.MULTILINE)
    return re.sub(r"\n{3,}", "\n\n", code).strip("\n") + "\n"


OPTIMIZATIONS: tuple[Optimization, ...] = (
    Optimization("Optimized image loading", _lazy_images),
    Optimization("Secured external links", _safe_blank_targets),
    Optimization("Added ARIA labels", _label_empty_buttons),
    Optimization("Removed debug statements", _strip_debug_statements),
    Optimization("Added trackBy functions for *ngFor", _track_by, frozenset({"angular"})),
    Optimization("Normalized whitespace", _normalize_whitespace),
)


class ArtifactOptimizer:
    """Applies each optimization in order and records the ones that changed the code."""

    def __init__(self, optimizations: tuple[Optimization, ...] = OPTIMIZATIONS):
        self.optimizations = optimizations

    def optimize(self, code: str, framework: Optional[str] = None) -> OptimizationResult:
        result = OptimizationResult(code=code)
        for optimization in self.optimizations:
            if not optimization.applies_to(framework):
                continue
            updated = optimization.transform(result.code)
            if updated != result.code:
                result.code = updated
                result.applied.append(optimization.name)
        if result.applied:
            logger.debug("Applied optimizations: %s", ", ".join(result.applied))
        return result
