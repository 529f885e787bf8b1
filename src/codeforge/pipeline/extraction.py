"""Turning raw model output into artifact fields.

Everything here is pure text processing: code extraction from fenced blocks,
dependency and tag detection, and keyword-based inference of a request's
category, component type and framework.
"""

from __future__ import annotations

import re
import sys
from typing import Optional

from ..models import GenerationRequest, PromptAnalysis, ValidationReport

_FENCE_RE = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)

_JS_IMPORT_RE = re.compile(r"""import\s+(?:[\w\s{},*]+\s+from\s+)?['"]([^'"]+)['"]""")
_JS_REQUIRE_RE = re.compile(r"""require\(\s*['"]([^'"]+)['"]\s*\)""")
# Python forms only; "import X from 'y'" is left to the JS pattern.
_PY_IMPORT_RE = re.compile(
    r"^[ \t]*(?:from\s+([\w.]+)\s+import\s|import\s+([\w.]+)(?:\s+as\s+\w+)?[ \t]*$)",
    re.MULTILINE,
)

FRAMEWORK_NAMES = ("react", "vue", "angular", "svelte", "solid", "preact", "lit")

# (keyword substrings, tag) pairs checked against generated code.
CODE_TAG_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("useState", "ref("), "interactive"),
    (("form", "input"), "form"),
    (("table", "grid"), "data-display"),
    (("chart", "graph"), "visualization"),
    (("animation", "transition"), "animated"),
    (("async", "await"), "async"),
    (("websocket", "socket"), "real-time"),
)

COMPONENT_TYPE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("form", "input"), "form"),
    (("table", "grid"), "table"),
    (("chart", "graph"), "chart"),
    (("modal", "dialog"), "modal"),
    (("nav", "menu"), "navigation"),
    (("card", "tile"), "card"),
    (("dashboard",), "dashboard"),
    (("button",), "button"),
)

CATEGORY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("form", "input"), "Forms & Inputs"),
    (("table", "grid", "list"), "Data Display"),
    (("nav", "menu", "breadcrumb"), "Navigation"),
    (("modal", "dialog", "popup"), "Overlays"),
    (("chart", "graph", "analytics"), "Data Visualization"),
    (("dashboard", "admin"), "Admin & Dashboard"),
    (("hero", "landing", "cta"), "Marketing"),
)

FEATURE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("dark mode", "theme"), "theming"),
    (("responsive", "mobile"), "responsive"),
    (("animat", "transition"), "animations"),
    (("accessib", "a11y", "aria"), "accessibility"),
    (("validat",), "validation"),
    (("sort",), "sorting"),
    (("filter", "search"), "filtering"),
    (("paginat",), "pagination"),
    (("drag", "drop"), "drag-and-drop"),
    (("real-time", "realtime", "live"), "real-time"),
)

ACCESSIBILITY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("aria-",), "ARIA labels"),
    (("role=",), "ARIA roles"),
    (("tabIndex", "tabindex"), "Keyboard navigation"),
    (("onKeyDown", "onKeyPress", "@keydown"), "Keyboard shortcuts"),
    (("focus",), "Focus management"),
    (("alt=", "title="), "Alternative text"),
)

DEFAULT_CATEGORY = "Layout"
DEFAULT_COMPONENT_TYPE = "component"


def _first_match(text: str, rules: tuple[tuple[tuple[str, ...], str], ...], default: str) -> str:
    lowered = text.lower()
    for keywords, label in rules:
        if any(keyword in lowered for keyword in keywords):
            return label
    return default


def extract_code(response: str) -> str:
    """Concatenate fenced code blocks in order, or fall back to the whole text.

    Each block is trimmed and blocks are joined with a blank line.
    """
    blocks = [match.group(1).strip() for match in _FENCE_RE.finditer(response)]
    if blocks:
        return "\n\n".join(blocks)
    return response.strip()


def extract_dependencies(code: str, framework: Optional[str] = None) -> list[str]:
    """Third-party packages imported by ``code``, in first-seen order.

    Relative imports, ``@/`` aliases, framework core packages and Python
    standard-library modules are excluded.
    """
    excluded = set(FRAMEWORK_NAMES)
    if framework:
        excluded.add(framework.lower())

    found: dict[str, None] = {}
    for regex in (_JS_IMPORT_RE, _JS_REQUIRE_RE):
        for match in regex.finditer(code):
            dep = match.group(1)
            if dep.startswith((".", "@/", "~/")) or dep in excluded:
                continue
            found.setdefault(dep, None)

    for match in _PY_IMPORT_RE.finditer(code):
        module = match.group(1) or match.group(2)
        if module.startswith("."):
            continue
        root = module.split(".")[0]
        if root in sys.stdlib_module_names or root == "__future__":
            continue
        found.setdefault(root, None)

    return list(found)


def extract_tags(code: str, request: GenerationRequest) -> list[str]:
    """Tags from the request hints plus features detected in the code."""
    tags: dict[str, None] = {}
    if request.framework:
        tags[request.framework.lower()] = None

    requirements = request.requirements
    if requirements is not None:
        if requirements.typescript:
            tags["typescript"] = None
        if requirements.responsive:
            tags["responsive"] = None
        if requirements.animations:
            tags["animations"] = None
        if requirements.accessibility:
            tags["accessible"] = None

    for keywords, tag in CODE_TAG_RULES:
        if any(keyword in code for keyword in keywords):
            tags[tag] = None
    return list(tags)


def extract_accessibility_features(code: str) -> list[str]:
    return [label for keywords, label in ACCESSIBILITY_RULES if any(k in code for k in keywords)]


def infer_component_type(prompt: str) -> str:
    return _first_match(prompt, COMPONENT_TYPE_RULES, DEFAULT_COMPONENT_TYPE)


def infer_category(prompt: str) -> str:
    return _first_match(prompt, CATEGORY_RULES, DEFAULT_CATEGORY)


def infer_framework(prompt: str) -> Optional[str]:
    lowered = prompt.lower()
    for name in FRAMEWORK_NAMES:
        if re.search(rf"\b{name}\b", lowered):
            return name
    return None


def detect_features(prompt: str) -> list[str]:
    lowered = prompt.lower()
    return [label for keywords, label in FEATURE_RULES if any(k in lowered for k in keywords)]


FRAMEWORK_MARKERS: dict[str, tuple[str, ...]] = {
    "react": ("return (", "jsx", "tsx", "/>"),
    "vue": ("<template", "defineComponent", "<script setup"),
    "angular": ("@Component",),
    "svelte": ("<script", "{#"),
}


def analyze_prompt(prompt: str) -> PromptAnalysis:
    """Detect framework, category, component type and features from free text."""
    return PromptAnalysis(
        framework=infer_framework(prompt),
        category=infer_category(prompt),
        component_type=infer_component_type(prompt),
        features=detect_features(prompt),
    )


def validate_artifact(body: str, framework: Optional[str] = None) -> ValidationReport:
    """Structural checks: non-empty body, an export, and framework markers."""
    errors: list[str] = []
    warnings: list[str] = []
    if not body.strip():
        errors.append("Artifact body is empty")
    else:
        name = (framework or "").lower()
        if name in FRAMEWORK_MARKERS:
            if "export" not in body and name != "svelte":
                warnings.append("No export statement found")
            if not any(marker in body for marker in FRAMEWORK_MARKERS[name]):
                warnings.append(f"No {name} markers found; the code may target another framework")
    return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
