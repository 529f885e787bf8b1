"""Quality review of generated artifacts."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from ..errors import CodeforgeError
from ..llm.prompts import REVIEW_PROMPT
from ..llm.provider import GenerationOptions
from ..models import (
    GenerationContext,
    MetricName,
    ReviewIssue,
    ReviewMetrics,
    ReviewResult,
    Severity,
)
from ..registry import Candidate
from .extraction import extract_code

logger = logging.getLogger(__name__)

SEVERITY_PENALTY: dict[str, int] = {"error": 10, "warning": 5, "info": 2}
MAX_LINE_LENGTH = 120
COMPLEXITY_LIMIT = 10


@runtime_checkable
class Reviewer(Protocol):
    """Scores an artifact body."""

    async def review(
        self, code: str, context: GenerationContext, framework: Optional[str] = None
    ) -> ReviewResult:
        ...


@dataclass(frozen=True)
class PatternRule:
    """Regex rule reporting one issue per matching line."""

    name: str
    metric: MetricName
    severity: Severity
    pattern: re.Pattern
    description: str
    fix: Optional[str] = None


@dataclass(frozen=True)
class CheckRule:
    """Whole-body rule reporting at most one issue."""

    name: str
    metric: MetricName
    severity: Severity
    check: Callable[[str], bool]
    description: str
    fix: Optional[str] = None


def _looks_like_markup_js(code: str) -> bool:
    return bool(re.search(r"\b(const|let|function|export)\b|=>", code))


def _missing_export(code: str) -> bool:
    if not _looks_like_markup_js(code):
        return False
    return "export" not in code and "module.exports" not in code


def _map_without_key(code: str) -> bool:
    return ".map(" in code and re.search(r"<\w", code) is not None and "key=" not in code


def _many_list_renders(code: str) -> bool:
    return code.count(".map(") > 2 and "virtual" not in code.lower()


def _blank_target(code: str) -> bool:
    return 'target="_blank"' in code and "noopener" not in code


def _unhandled_promise(code: str) -> bool:
    return ".then(" in code and ".catch(" not in code


def _button_without_text(code: str) -> bool:
    for match in re.finditer(r"<button([^>]*)>\s*</button>", code):
        if "aria-label" not in match.group(1):
            return True
    return False


def _input_without_label(code: str) -> bool:
    for match in re.finditer(r"<input[^>]*>", code):
        tag = match.group(0)
        if "aria-label" not in tag and "id=" not in tag:
            return True
    return False


def cyclomatic_complexity(code: str) -> int:
    """Rough decision-point count plus one."""
    decisions = re.findall(r"\b(?:if|elif|for|while|case|catch|except)\b|&&|\|\||\?\s*[^.:?]", code)
    return len(decisions) + 1


PATTERN_RULES: tuple[PatternRule, ...] = (
    # security
    PatternRule("no-eval", "security", "error", re.compile(r"\beval\s*\("),
                "Never use eval(): arbitrary code execution risk", "Parse data explicitly instead"),
    PatternRule("no-dangerous-html", "security", "error", re.compile(r"dangerouslySetInnerHTML|v-html="),
                "Raw HTML injection enables XSS", "Render text content or sanitize input first"),
    PatternRule("no-inner-html", "security", "error", re.compile(r"\.innerHTML\s*="),
                "Assigning innerHTML enables XSS", "Use textContent or a sanitizer"),
    PatternRule("no-hardcoded-secret", "security", "error",
                re.compile(r"""(?i)\b(?:api[_-]?key|secret|password|token)\b\s*[:=]\s*['"][^'"]{4,}['"]"""),
                "Hard-coded credential", "Load secrets from configuration or the environment"),
    PatternRule("no-insecure-url", "security", "warning",
                re.compile(r"""['"]http://(?!localhost|127\.0\.0\.1)"""),
                "Insecure http:// URL", "Use https://"),
    # reliability
    PatternRule("no-empty-catch", "reliability", "warning", re.compile(r"catch\s*(?:\([^)]*\))?\s*\{\s*\}"),
                "Empty catch block swallows errors", "Log or handle the error"),
    PatternRule("no-bare-except", "reliability", "warning", re.compile(r"^\s*except\s*:", re.MULTILINE),
                "Bare except catches everything", "Catch specific exception types"),
    PatternRule("no-non-null-assertion", "reliability", "info", re.compile(r"\w!\.\w"),
                "Non-null assertion hides possible null values", "Use optional chaining (?.)"),
    # performance
    PatternRule("no-wildcard-import", "performance", "warning",
                re.compile(r"import\s+\*\s+as\s+\w+|from\s+\S+\s+import\s+\*"),
                "Wildcard import pulls in the entire module", "Import only what you use"),
    PatternRule("no-inline-handler", "performance", "warning",
                re.compile(r"(?:onClick|onChange|onSubmit)\s*=\s*\{\s*\([^)]*\)\s*=>"),
                "Inline handler is recreated on every render", "Hoist the handler or wrap it in useCallback"),
    # maintainability
    PatternRule("no-any", "maintainability", "warning", re.compile(r":\s*any\b"),
                'Avoid the "any" type', "Use a specific type or unknown"),
    PatternRule("no-debug-output", "maintainability", "info",
                re.compile(r"console\.(?:log|debug)\(|\bdebugger\b|^\s*print\(", re.MULTILINE),
                "Debug output left in code", "Remove it or use a logger"),
    PatternRule("no-todo", "maintainability", "info", re.compile(r"\b(?:TODO|FIXME|XXX)\b"),
                "Unresolved TODO marker", "Finish or track the work"),
    PatternRule("img-alt", "maintainability", "error", re.compile(r"<img(?![^>]*\balt=)[^>]*>"),
                "Image missing alt attribute", "Add descriptive alt text"),
)

CHECK_RULES: tuple[CheckRule, ...] = (
    CheckRule("blank-target", "security", "warning", _blank_target,
              'target="_blank" without rel="noopener"', 'Add rel="noopener noreferrer"'),
    CheckRule("missing-export", "reliability", "warning", _missing_export,
              "No export statement found", "Export the component"),
    CheckRule("unhandled-promise", "reliability", "info", _unhandled_promise,
              "Promise chain without .catch()", "Handle rejections"),
    CheckRule("list-key", "performance", "warning", _map_without_key,
              "Rendered list items lack a key prop", "Add a stable key to each item"),
    CheckRule("large-lists", "performance", "info", _many_list_renders,
              "Several list renders without virtualization", "Consider virtualizing long lists"),
    CheckRule("button-text", "maintainability", "error", _button_without_text,
              "Button missing accessible text", "Add text content or aria-label"),
    CheckRule("input-label", "maintainability", "warning", _input_without_label,
              "Input element missing label", "Associate a label or add aria-label"),
)

POSITIVE_PATTERNS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\b(?:interface|type)\s+\w+\s*(?:=|\{)|->\s*\w+"), "Explicit types"),
    (re.compile(r"aria-\w+"), "ARIA attributes"),
    (re.compile(r"\btry\b"), "Error handling"),
    (re.compile(r"useMemo|useCallback|\bmemo\(|lru_cache"), "Memoization"),
    (re.compile(r"<(?:nav|main|section|header|footer|article)\b"), "Semantic HTML"),
    (re.compile(r"(?i)\bloading\b"), "Loading state"),
)


class StaticReviewer:
    """Deterministic rule-based reviewer.

    Every metric starts at 100 and loses 10/5/2 points per error/warning/info
    issue attributed to it, floored at 0.
    """

    name = "static"

    def __init__(self, weights: Optional[dict[str, float]] = None):
        self.weights = weights

    async def review(
        self, code: str, context: GenerationContext, framework: Optional[str] = None
    ) -> ReviewResult:
        return self.review_sync(code, framework)

    def review_sync(self, code: str, framework: Optional[str] = None) -> ReviewResult:
        issues = self._collect_issues(code)
        metrics = self._score(issues)
        positives = [label for pattern, label in POSITIVE_PATTERNS if pattern.search(code)]
        result = ReviewResult.from_metrics(issues, positives, metrics, self.weights, reviewer=self.name)
        logger.debug(
            "Static review: %d issue(s), overall %.1f", len(issues), result.overall_score or 0.0
        )
        return result

    def _collect_issues(self, code: str) -> list[ReviewIssue]:
        issues: list[ReviewIssue] = []
        lines = code.splitlines()

        for rule in PATTERN_RULES:
            seen_lines: set[int] = set()
            for match in rule.pattern.finditer(code):
                line = code.count("\n", 0, match.start()) + 1
                if line in seen_lines:
                    continue
                seen_lines.add(line)
                issues.append(ReviewIssue(
                    severity=rule.severity,
                    metric=rule.metric,
                    rule=rule.name,
                    description=rule.description,
                    fix=rule.fix,
                    line=line,
                ))

        for rule in CHECK_RULES:
            if rule.check(code):
                issues.append(ReviewIssue(
                    severity=rule.severity,
                    metric=rule.metric,
                    rule=rule.name,
                    description=rule.description,
                    fix=rule.fix,
                ))

        for number, text in enumerate(lines, start=1):
            if len(text) > MAX_LINE_LENGTH:
                issues.append(ReviewIssue(
                    severity="info",
                    metric="maintainability",
                    rule="line-length",
                    description=f"Line exceeds {MAX_LINE_LENGTH} characters",
                    line=number,
                ))

        complexity = cyclomatic_complexity(code)
        if complexity > COMPLEXITY_LIMIT:
            issues.append(ReviewIssue(
                severity="warning",
                metric="maintainability",
                rule="complexity",
                description=f"High cyclomatic complexity ({complexity})",
                fix="Split the logic into smaller functions",
            ))
        return issues

    @staticmethod
    def _score(issues: list[ReviewIssue]) -> ReviewMetrics:
        scores = {name: 100.0 for name in ReviewMetrics.model_fields}
        for issue in issues:
            scores[issue.metric] -= SEVERITY_PENALTY[issue.severity]
        return ReviewMetrics(**{name: max(0.0, value) for name, value in scores.items()})


class _ProviderReviewPayload(BaseModel):
    issues: list[ReviewIssue] = Field(default_factory=list)
    positives: list[str] = Field(default_factory=list)
    metrics: ReviewMetrics


class ProviderReviewer:
    """Delegates review to the provider/model pair returned by ``target_source``.

    Any failure (request, parse, validation or timeout) yields an unscored
    result instead of failing the pipeline.
    """

    name = "provider"

    def __init__(
        self,
        target_source: Callable[[], Candidate],
        weights: Optional[dict[str, float]] = None,
        timeout: float = 60.0,
    ):
        self.target_source = target_source
        self.weights = weights
        self.timeout = timeout

    async def review(
        self, code: str, context: GenerationContext, framework: Optional[str] = None
    ) -> ReviewResult:
        prompt = REVIEW_PROMPT.format(framework=framework or "source", code=code)
        try:
            target = self.target_source()
            options = GenerationOptions(model=target.model_id, temperature=0.0, timeout=self.timeout)
            response = await asyncio.wait_for(
                target.adapter.generate(prompt, options),
                timeout=self.timeout,
            )
            payload = _ProviderReviewPayload.model_validate(json.loads(extract_code(response.content)))
        except (CodeforgeError, asyncio.TimeoutError, ValueError, ValidationError) as e:
            logger.warning("Provider review failed, leaving artifact unscored: %s", e)
            return ReviewResult.unscored(f"{type(e).__name__}: {e}", reviewer=self.name)

        return ReviewResult.from_metrics(
            payload.issues, payload.positives, payload.metrics, self.weights, reviewer=self.name
        )
