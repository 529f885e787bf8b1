"""Prompt templates for generation and review calls."""

TEMPLATE_VERSION = "2024.11-1"


SYSTEM_PROMPT = """You are a UI component generation specialist working from a curated knowledge base.

## Your Context:
- {similar_count} similar components analyzed
- {pattern_count} code templates available
- {doc_count} documentation excerpts loaded

## Core Capabilities:
1. Generate production-ready components
2. Follow {framework} best practices strictly
3. Implement accessibility ({accessibility}) by default
4. Apply performance optimizations
5. Keep code type-safe, with no 'any' types

## Project Conventions:
{conventions}
"""


CORE_REQUEST_SECTION = """## Component Request

**Prompt**: {prompt}
**Framework**: {framework}
**Category**: {category}

Please generate a {framework} component that fulfills this request."""


SIMILAR_SECTION = """## Similar High-Rated Components

Based on analysis of {count} similar components, the closest matches are:

{examples}

Incorporate the best practices from these components."""


PATTERNS_SECTION = """## Relevant Code Patterns

{patterns}"""


DOCUMENTATION_SECTION = """## Official Documentation Guidance

{documentation}

Follow these official guidelines and patterns in your implementation."""


REQUIREMENTS_SECTION = """## Requirements and Constraints

- **TypeScript**: {typescript}
- **Accessibility**: {accessibility}
- **Responsive**: {responsive}
- **Animations**: {animations}
{design_system}
### Required Features:
{features}{data_source}"""

DESIGN_SYSTEM_LINE = "- **Design System**: {design_system} (use its components, tokens and spacing scale)\n"

DATA_SOURCE_SECTION = """

### Data Integration:
- **Source**: {data_source}
- Handle loading, empty and error states"""


QUALITY_SECTION = """## Quality Standards

The generated component must:
1. Use strict typing with proper interfaces
2. Include error handling plus loading and error states
3. Be fully accessible (keyboard navigation, ARIA labels)
4. Use semantic HTML
5. Be optimized for performance

## Output Format

Return the complete component in a single fenced code block, including all
imports, types, helpers and the export statement. Do not include
installation instructions or explanations."""


REGENERATION_SECTION = """## Previous Attempt Issues

A previous attempt scored {score} (acceptance threshold {threshold}). Fix
every issue below while keeping what already worked:

{issues}"""


TRANSLATION_PROMPT = """Translate this {source_framework} component to {target_framework}:

```{language}
{code}
```

Requirements:
1. Maintain all functionality
2. Use {target_framework} best practices and idiomatic patterns
3. Keep the same props/inputs interface
4. Maintain accessibility features

Generate only the translated component code."""


VARIATION_SUFFIX = "Generate a variation of this component {variation}."

VARIATIONS = (
    "with a different visual style",
    "with enhanced animations",
    "with a more compact layout",
    "with additional features",
    "optimized for mobile",
)


REVIEW_PROMPT = """Review the following {framework} code for quality.

```
{code}
```

Respond with JSON only, matching this shape:
{{
  "issues": [{{"severity": "error|warning|info", "metric": "maintainability|reliability|security|performance", "description": "...", "fix": "..."}}],
  "positives": ["..."],
  "metrics": {{"maintainability": 0-100, "reliability": 0-100, "security": 0-100, "performance": 0-100}}
}}
"""


CONNECTION_TEST_PROMPT = "Say hello"
