"""Configuration management for codeforge."""

import os
from pathlib import Path
from typing import Literal, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


ENV_PREFIX = "CODEFORGE_"


class Config(BaseModel):
    """Application configuration."""

    # Provider selection
    default_provider: str = Field(default="anthropic")
    default_model: str = Field(default="claude-3-5-sonnet-20241022")
    temperature: float = Field(default=0.7)
    max_output_tokens: int = Field(default=4000)
    request_timeout: float = Field(default=60.0)

    # Retrieval
    retrieval_timeout: float = Field(default=5.0)
    max_similar: int = Field(default=5)

    # Retry / fallback
    max_fallbacks: int = Field(default=2)
    attempts_per_candidate: int = Field(default=1)
    retry_backoff: float = Field(default=0.5)

    # Review
    review_mode: Literal["static", "provider"] = Field(default="static")
    acceptance_threshold: float = Field(default=70.0)
    regeneration_budget: int = Field(default=1)

    # Persistence
    persist_attempts: int = Field(default=3)
    output_dir: Path = Field(default=Path("artifacts"))
    templates_dir: Optional[Path] = Field(default=None)
    docs_dir: Optional[Path] = Field(default=None)

    # Recommendations
    recommend_threshold: float = Field(default=0.7)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from ``CODEFORGE_*`` environment variables."""
        def _env(name: str) -> Optional[str]:
            return os.getenv(ENV_PREFIX + name)

        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                return int(value) if value is not None else fallback
            except ValueError:
                return fallback

        def _parse_float(value: Optional[str], fallback: float) -> float:
            try:
                return float(value) if value is not None else fallback
            except ValueError:
                return fallback

        def _parse_path(value: Optional[str]) -> Optional[Path]:
            return Path(value) if value else None

        review_mode = (_env("REVIEW_MODE") or "static").lower()
        if review_mode not in ("static", "provider"):
            review_mode = "static"

        return cls(
            default_provider=_env("DEFAULT_PROVIDER") or "anthropic",
            default_model=_env("DEFAULT_MODEL") or "claude-3-5-sonnet-20241022",
            temperature=_parse_float(_env("TEMPERATURE"), 0.7),
            max_output_tokens=_parse_int(_env("MAX_OUTPUT_TOKENS"), 4000),
            request_timeout=_parse_float(_env("REQUEST_TIMEOUT"), 60.0),
            retrieval_timeout=_parse_float(_env("RETRIEVAL_TIMEOUT"), 5.0),
            max_similar=_parse_int(_env("MAX_SIMILAR"), 5),
            max_fallbacks=_parse_int(_env("MAX_FALLBACKS"), 2),
            attempts_per_candidate=_parse_int(_env("ATTEMPTS_PER_CANDIDATE"), 1),
            retry_backoff=_parse_float(_env("RETRY_BACKOFF"), 0.5),
            review_mode=review_mode,
            acceptance_threshold=_parse_float(_env("ACCEPTANCE_THRESHOLD"), 70.0),
            regeneration_budget=_parse_int(_env("REGENERATION_BUDGET"), 1),
            persist_attempts=_parse_int(_env("PERSIST_ATTEMPTS"), 3),
            output_dir=_parse_path(_env("OUTPUT_DIR")) or Path("artifacts"),
            templates_dir=_parse_path(_env("TEMPLATES_DIR")),
            docs_dir=_parse_path(_env("DOCS_DIR")),
            recommend_threshold=_parse_float(_env("RECOMMEND_THRESHOLD"), 0.7),
        )
