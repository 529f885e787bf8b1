"""Tests for configuration loading."""

from pathlib import Path

from codeforge.config import Config


def test_config_defaults():
    config = Config()

    assert config.default_provider == "anthropic"
    assert config.max_fallbacks == 2
    assert config.regeneration_budget == 1
    assert config.acceptance_threshold == 70.0
    assert config.review_mode == "static"
    assert config.templates_dir is None


def test_config_from_env_overrides(monkeypatch, tmp_path):
    """Environment variables should override defaults."""
    monkeypatch.setenv("CODEFORGE_DEFAULT_PROVIDER", "openai")
    monkeypatch.setenv("CODEFORGE_DEFAULT_MODEL", "gpt-4")
    monkeypatch.setenv("CODEFORGE_MAX_FALLBACKS", "4")
    monkeypatch.setenv("CODEFORGE_ACCEPTANCE_THRESHOLD", "85.5")
    monkeypatch.setenv("CODEFORGE_REVIEW_MODE", "Provider")
    monkeypatch.setenv("CODEFORGE_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("CODEFORGE_DOCS_DIR", str(tmp_path / "docs"))

    config = Config.from_env()

    assert config.default_provider == "openai"
    assert config.default_model == "gpt-4"
    assert config.max_fallbacks == 4
    assert config.acceptance_threshold == 85.5
    assert config.review_mode == "provider"
    assert Path(config.output_dir) == tmp_path / "out"
    assert config.docs_dir == tmp_path / "docs"


def test_config_malformed_numbers_fall_back(monkeypatch):
    """Unparseable numbers keep their defaults instead of raising."""
    monkeypatch.setenv("CODEFORGE_REQUEST_TIMEOUT", "soon")
    monkeypatch.setenv("CODEFORGE_REGENERATION_BUDGET", "two")
    monkeypatch.setenv("CODEFORGE_REVIEW_MODE", "llm")

    config = Config.from_env()

    assert config.request_timeout == 60.0
    assert config.regeneration_budget == 1
    assert config.review_mode == "static"
