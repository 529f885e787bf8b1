"""Command line interface for codeforge."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from .config import Config
from .errors import CodeforgeError, StreamCancelledError
from .models import GeneratedArtifact, GenerationRequest
from .observability import configure_logging, configure_tracing
from .pipeline.events import ProgressEvent
from .pipeline.prompt_builder import FRAMEWORK_LANGUAGES
from .session import GenerationSession
from .streaming import ConsolePrinter

console = Console()


def build_session(output_dir: Optional[str] = None) -> GenerationSession:
    """Session from the environment, optionally writing to another directory."""
    config = Config.from_env()
    if output_dir:
        config = config.model_copy(update={"output_dir": Path(output_dir)})
    return GenerationSession.from_env(config=config)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """codeforge - multi-provider AI component generation."""
    configure_logging(verbose)


@cli.command()
def providers():
    """List known providers and whether they have a credential."""
    session = build_session()
    table = Table(title="Providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Models", justify="right")
    table.add_column("Streaming")
    table.add_column("Status")

    active = session.active
    for descriptor in session.list_providers():
        status = "[green]ready[/green]" if session.registry.has_adapter(descriptor.id) else "[dim]no key[/dim]"
        if active and active[0] == descriptor.id:
            status += f" [bold](active: {active[1]})[/bold]"
        table.add_row(
            descriptor.id,
            descriptor.name,
            str(len(descriptor.models)),
            "yes" if descriptor.features.streaming else "emulated",
            status,
        )
    console.print(table)


@cli.command()
@click.argument("provider_id")
def models(provider_id: str):
    """List the models of PROVIDER_ID."""
    session = build_session()
    try:
        descriptors = session.list_models(provider_id)
    except CodeforgeError as e:
        _fail(str(e))
        return

    table = Table(title=f"Models for {provider_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Context", justify="right")
    table.add_column("Capabilities")
    table.add_column("Price in/out ($/1M)", justify="right")
    for model in descriptors:
        caps = [name for name in ("coding", "vision", "function_calling") if getattr(model.capabilities, name)]
        price = f"{model.pricing.input:g} / {model.pricing.output:g}" if model.pricing else "-"
        table.add_row(model.id, f"{model.context_window:,}", ", ".join(caps) or "-", price)
    console.print(table)


@cli.command()
@click.argument("use_case")
@click.option("--top", "-n", default=5, show_default=True, help="Number of recommendations")
def recommend(use_case: str, top: int):
    """Recommend models for a USE_CASE description."""
    session = build_session()
    recommendations = session.recommend(use_case, top)
    if not recommendations:
        click.echo("No model scored above the recommendation threshold.")
        return

    table = Table(title=f"Recommendations for '{use_case}'")
    table.add_column("#", justify="right")
    table.add_column("Provider / Model", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Why")
    for rank, rec in enumerate(recommendations, start=1):
        table.add_row(str(rank), f"{rec.provider_id}/{rec.model.id}", f"{rec.score:.2f}", rec.reason)
    console.print(table)


@cli.command("test-connections")
@click.option("--timeout", type=float, default=None, help="Per-provider timeout in seconds")
def test_connections(timeout: Optional[float]):
    """Send a minimal prompt through every provider with a credential."""
    session = build_session()

    async def run() -> dict[str, bool]:
        async with session:
            return await session.test_all_providers(timeout)

    results = asyncio.run(run())
    if not results:
        _fail("No provider credentials found in the environment")
        return
    for provider_id, ok in results.items():
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"{mark} {provider_id}")
    if not all(results.values()):
        sys.exit(1)


@cli.command()
@click.argument("prompt")
@click.option("--framework", "-f", help="Target framework (react, vue, angular, svelte)")
@click.option("--category", "-c", help="Component category")
@click.option("--provider", "-p", "provider_id", help="Provider to use")
@click.option("--model", "-m", "model_id", help="Model to use (defaults to the provider's first model)")
@click.option("--stream", is_flag=True, help="Stream output as it is generated")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), help="Directory for stored artifacts")
def generate(
    prompt: str,
    framework: Optional[str],
    category: Optional[str],
    provider_id: Optional[str],
    model_id: Optional[str],
    stream: bool,
    output_dir: Optional[str],
):
    """Generate a component from PROMPT.

    Examples:
        codeforge generate "A login form with validation" -f react

        codeforge generate "Sortable data table" -p openai -m gpt-4 --stream
    """
    configure_tracing()
    session = build_session(output_dir)

    try:
        if provider_id:
            if model_id is None:
                default = session.registry.catalog.get_provider(provider_id).default_model
                model_id = default.id if default else None
            if model_id is None:
                _fail(f"Provider {provider_id} has no models")
                return
            session.set_provider(provider_id, model_id)
        elif model_id:
            _fail("--model requires --provider")
            return
        request = GenerationRequest(prompt=prompt, framework=framework, category=category)
    except (CodeforgeError, ValueError) as e:
        _fail(str(e))
        return

    active = session.active
    if active:
        click.echo(f"🤖 Generating with {active[0]}/{active[1]}...")

    def on_event(event: ProgressEvent) -> None:
        console.log(f"[dim]{event.stage.value}[/dim] {event.message}")

    async def run() -> GeneratedArtifact:
        async with session:
            if stream:
                return await session.generate_stream(request, ConsolePrinter(console), on_event)
            return await session.generate(request, on_event)

    try:
        artifact = asyncio.run(run())
    except StreamCancelledError as e:
        click.echo(f"\nCancelled after {len(e.partial)} characters", err=True)
        sys.exit(130)
    except CodeforgeError as e:
        _fail(str(e))
        return

    _print_artifact(artifact, show_body=not stream)


def _print_artifact(artifact: GeneratedArtifact, show_body: bool) -> None:
    meta = artifact.metadata
    if show_body:
        language = FRAMEWORK_LANGUAGES.get((artifact.framework or "").lower(), "typescript")
        console.print(Syntax(artifact.body, language, line_numbers=False))

    score = f"{artifact.quality_score:.1f}" if artifact.quality_score is not None else "unscored"
    click.echo(f"\n   Model: {meta.provider_id}/{meta.model_id}")
    click.echo(f"   Type: {artifact.component_type} ({artifact.category})")
    click.echo(f"   Quality: {score}{' (below threshold)' if meta.below_threshold else ''}")
    if artifact.dependencies:
        click.echo(f"   Dependencies: {', '.join(artifact.dependencies)}")
    if meta.applied_optimizations:
        click.echo(f"   Optimizations: {', '.join(meta.applied_optimizations)}")
    for failure in meta.failures:
        click.echo(f"   ⚠️  {failure.stage}: {failure.error_type}: {failure.message}", err=True)

    if meta.persisted:
        click.echo(f"\n✅ Artifact stored: {meta.artifact_id}")
    else:
        click.echo("\n✅ Artifact generated (not stored)")


if __name__ == "__main__":
    cli()
