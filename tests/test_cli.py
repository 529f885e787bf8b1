"""CLI tests."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from codeforge.errors import RequestFailedError
from codeforge.main import cli
from codeforge.storage import InMemoryArtifactStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _quiet_observability():
    with patch("codeforge.main.configure_logging"), patch("codeforge.main.configure_tracing") as tracing:
        tracing.return_value = False
        yield


@pytest.fixture
def cli_session(make_session):
    """Patch ``build_session`` to hand out a fake-backed session."""
    patchers = []

    def install(scripts=None, **kwargs):
        session, factory = make_session(scripts, **kwargs)
        patcher = patch("codeforge.main.build_session", return_value=session)
        patcher.start()
        patchers.append(patcher)
        return session, factory

    yield install
    for patcher in patchers:
        patcher.stop()


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("providers", "models", "recommend", "test-connections", "generate"):
        assert command in result.output


def test_providers_marks_ready_and_active(runner, cli_session):
    cli_session(credentials=("alpha",))

    result = runner.invoke(cli, ["providers"])

    assert result.exit_code == 0
    assert "alpha" in result.output
    assert "ready" in result.output
    assert "no key" in result.output
    assert "active" in result.output


def test_models_lists_provider_models(runner, cli_session):
    cli_session()

    result = runner.invoke(cli, ["models", "alpha"])

    assert result.exit_code == 0
    assert "alpha-1" in result.output
    assert "alpha-2" in result.output


def test_models_unknown_provider(runner, cli_session):
    cli_session()

    result = runner.invoke(cli, ["models", "nope"])

    assert result.exit_code == 1
    assert "Error: Provider 'nope' not found" in result.output


def test_recommend_without_matches(runner, cli_session):
    cli_session()

    result = runner.invoke(cli, ["recommend", "something unrelated"])

    assert result.exit_code == 0
    assert "No model scored above the recommendation threshold." in result.output


def test_recommend_prints_ranked_models(runner, cli_session, config):
    config.recommend_threshold = 0.2
    cli_session()

    result = runner.invoke(cli, ["recommend", "code", "--top", "2"])

    assert result.exit_code == 0
    assert "alpha/alpha-1" in result.output
    assert "0.30" in result.output


def test_test_connections_all_ok(runner, cli_session):
    cli_session()

    result = runner.invoke(cli, ["test-connections"])

    assert result.exit_code == 0
    assert "alpha" in result.output
    assert "gamma" in result.output


def test_test_connections_failure_exits_nonzero(runner, cli_session):
    cli_session({"beta": {"errors": [RequestFailedError("down", "beta")]}})

    result = runner.invoke(cli, ["test-connections"])

    assert result.exit_code == 1


def test_test_connections_without_credentials(runner, cli_session):
    cli_session(credentials=())

    result = runner.invoke(cli, ["test-connections"])

    assert result.exit_code == 1
    assert "No provider credentials found" in result.output


class TestGenerateCommand:
    def test_generate_stores_artifact(self, runner, cli_session):
        cli_session(store=InMemoryArtifactStore())

        result = runner.invoke(cli, ["generate", "A save button", "-f", "react"])

        assert result.exit_code == 0, result.output
        assert "🤖 Generating with alpha/alpha-1..." in result.output
        assert "Quality: 100.0" in result.output
        assert "Dependencies: clsx" in result.output
        assert "✅ Artifact stored: button-" in result.output

    def test_generate_without_store(self, runner, cli_session):
        cli_session()

        result = runner.invoke(cli, ["generate", "A save button"])

        assert result.exit_code == 0, result.output
        assert "✅ Artifact generated (not stored)" in result.output

    def test_generate_with_provider_uses_its_default_model(self, runner, cli_session):
        _, factory = cli_session()

        result = runner.invoke(cli, ["generate", "A card", "-p", "beta"])

        assert result.exit_code == 0, result.output
        assert "🤖 Generating with beta/beta-1..." in result.output
        assert factory.created["beta"].calls

    def test_generate_unknown_provider(self, runner, cli_session):
        cli_session()

        result = runner.invoke(cli, ["generate", "A card", "-p", "nope"])

        assert result.exit_code == 1
        assert "Error: Provider 'nope' not found" in result.output

    def test_model_requires_provider(self, runner, cli_session):
        cli_session()

        result = runner.invoke(cli, ["generate", "A card", "-m", "alpha-2"])

        assert result.exit_code == 1
        assert "--model requires --provider" in result.output

    def test_generate_stream(self, runner, cli_session):
        cli_session({"alpha": {"fragments": ["export const A = ", "() => <hr />;"]}})

        result = runner.invoke(cli, ["generate", "A divider", "--stream"])

        assert result.exit_code == 0, result.output
        assert "Stream complete" in result.output

    def test_generate_failure_exits_nonzero(self, runner, cli_session):
        failure = {"errors": [RequestFailedError("down")]}
        cli_session({"alpha": failure, "beta": dict(failure), "gamma": dict(failure)})

        result = runner.invoke(cli, ["generate", "A card"])

        assert result.exit_code == 1
        assert "Error: Pipeline stage 'generating' failed" in result.output

    def test_below_threshold_is_reported(self, runner, cli_session, config, poor_component):
        config.acceptance_threshold = 95.0
        config.regeneration_budget = 0
        cli_session({"alpha": {"responses": [poor_component]}})

        result = runner.invoke(cli, ["generate", "A widget"])

        assert result.exit_code == 0, result.output
        assert "Quality: 93.2 (below threshold)" in result.output or "Quality: 93.3 (below threshold)" in result.output
        assert "RegenerationBudgetExhausted" in result.output
