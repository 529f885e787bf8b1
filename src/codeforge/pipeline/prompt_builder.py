"""Deterministic prompt assembly."""

from typing import Optional

from ..llm import prompts
from ..models import GenerationContext, GenerationRequest, GenerationRequirements, ReviewResult
from .context import DEFAULT_FRAMEWORK
from .extraction import infer_category

SECTION_SEPARATOR = "\n\n---\n\n"
MAX_EXAMPLES = 3
MAX_PATTERNS = 3
MAX_ISSUES = 10

FRAMEWORK_LANGUAGES = {"react": "tsx", "vue": "vue", "angular": "ts", "svelte": "svelte"}


class PromptBuilder:
    """Builds system and user prompts from a request and its context.

    Output depends only on the inputs and ``template_version``; there are no
    timestamps or random elements.
    """

    def __init__(self, template_version: str = prompts.TEMPLATE_VERSION):
        self.template_version = template_version

    def build_system_prompt(self, request: GenerationRequest, context: GenerationContext) -> str:
        requirements = request.requirements or GenerationRequirements()
        conventions = context.project.get("conventions") or []
        if isinstance(conventions, str):
            conventions = [conventions]
        return prompts.SYSTEM_PROMPT.format(
            similar_count=len(context.similar),
            pattern_count=len(context.code_patterns),
            doc_count=len(context.documentation),
            framework=request.framework or DEFAULT_FRAMEWORK,
            accessibility=requirements.accessibility,
            conventions="\n".join(f"- {c}" for c in conventions) or "- Follow the framework defaults",
        )

    def build_prompt(self, request: GenerationRequest, context: GenerationContext) -> str:
        sections = [self._core_request(request)]
        if context.similar:
            sections.append(self._similar_section(context))
        if context.code_patterns:
            sections.append(self._patterns_section(context))
        if context.documentation:
            sections.append(prompts.DOCUMENTATION_SECTION.format(documentation="\n\n".join(context.documentation)))
        sections.append(self._requirements_section(request))
        sections.append(prompts.QUALITY_SECTION)
        return SECTION_SEPARATOR.join(sections)

    def build_regeneration_prompt(self, base_prompt: str, review: ReviewResult, threshold: float) -> str:
        """Amend ``base_prompt`` with the issues found in the previous attempt."""
        issues = sorted(review.issues, key=lambda i: {"error": 0, "warning": 1, "info": 2}[i.severity])
        lines = []
        for issue in issues[:MAX_ISSUES]:
            line = f"- [{issue.severity}] {issue.description}"
            if issue.line:
                line += f" (line {issue.line})"
            if issue.fix:
                line += f". Fix: {issue.fix}"
            lines.append(line)
        section = prompts.REGENERATION_SECTION.format(
            score=review.overall_score,
            threshold=threshold,
            issues="\n".join(lines) or "- No specific issues reported; raise overall quality",
        )
        return base_prompt + SECTION_SEPARATOR + section

    @staticmethod
    def variation_instruction(index: int) -> str:
        variation = prompts.VARIATIONS[index % len(prompts.VARIATIONS)]
        return prompts.VARIATION_SUFFIX.format(variation=variation)

    def build_translation_prompt(self, code: str, source_framework: str, target_framework: str) -> str:
        return prompts.TRANSLATION_PROMPT.format(
            source_framework=source_framework,
            target_framework=target_framework,
            language=FRAMEWORK_LANGUAGES.get(source_framework.lower(), "typescript"),
            code=code,
        )

    # Section builders

    @staticmethod
    def _core_request(request: GenerationRequest) -> str:
        return prompts.CORE_REQUEST_SECTION.format(
            prompt=request.prompt,
            framework=request.framework or DEFAULT_FRAMEWORK,
            category=request.category or infer_category(request.prompt),
        )

    @staticmethod
    def _similar_section(context: GenerationContext) -> str:
        examples = []
        for index, item in enumerate(context.similar[:MAX_EXAMPLES], start=1):
            title = item.metadata.get("title") or item.id
            tags = ", ".join(item.metadata.get("tags", [])) or "none"
            examples.append(f"### Example {index}: {title} (Score: {item.score:.2f})\n- **Tags**: {tags}")
        return prompts.SIMILAR_SECTION.format(count=len(context.similar), examples="\n\n".join(examples))

    @staticmethod
    def _patterns_section(context: GenerationContext) -> str:
        blocks = [
            f"### Pattern {index}\n```\n{pattern.strip()}\n```"
            for index, pattern in enumerate(context.code_patterns[:MAX_PATTERNS], start=1)
        ]
        return prompts.PATTERNS_SECTION.format(patterns="\n\n".join(blocks))

    @staticmethod
    def _requirements_section(request: GenerationRequest) -> str:
        requirements: Optional[GenerationRequirements] = request.requirements
        if requirements is None:
            requirements = GenerationRequirements()
        design_system = ""
        if requirements.design_system:
            design_system = prompts.DESIGN_SYSTEM_LINE.format(design_system=requirements.design_system)
        data_source = ""
        if requirements.data_source:
            data_source = prompts.DATA_SOURCE_SECTION.format(data_source=requirements.data_source)
        return prompts.REQUIREMENTS_SECTION.format(
            typescript="Required" if requirements.typescript else "Optional",
            accessibility=requirements.accessibility,
            responsive="Required" if requirements.responsive else "Optional",
            animations="Include smooth transitions" if requirements.animations else "Keep minimal",
            features="\n".join(f"- {f}" for f in requirements.features)
            or "- Standard features for this component type",
            design_system=design_system,
            data_source=data_source,
        )
