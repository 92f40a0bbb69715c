"""Command-line interface for PageDistill."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pagedistill import __version__
from pagedistill.config import Config, load_config
from pagedistill.errors import PipelineError
from pagedistill.extractor.presets import DEFAULT_PRESET, PRESETS
from pagedistill.metrics import SessionMetricsStore
from pagedistill.observability import configure_logging, set_enabled
from pagedistill.pipeline import GracefulDegradationPipeline, PipelineResult
from pagedistill.protocols import StageKind

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger(__name__)

STAGE_CHOICES = [stage.value for stage in StageKind]


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """PageDistill - main-content extraction with graceful degradation."""
    ctx.ensure_object(dict)
    try:
        settings = load_config(Path(config) if config else None)
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(2)

    if log_level:
        settings = settings.model_copy(
            update={"monitoring": settings.monitoring.model_copy(update={"log_level": log_level})}
        )
    configure_logging(settings.monitoring)
    set_enabled(settings.monitoring.prometheus_enabled)
    ctx.obj["config"] = settings


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", default="", help="Source URL of the document (drives site extractors and presets)")
@click.option("--min-quality", type=click.IntRange(0, 100), default=None, help="Minimum accepted quality score")
@click.option("--timeout-ms", type=click.IntRange(min=0), default=None, help="Pipeline deadline, 0 disables it")
@click.option(
    "--disable-stage",
    "disabled",
    multiple=True,
    type=click.Choice(STAGE_CHOICES),
    help="Skip a stage (repeatable)",
)
@click.option("--debug", is_flag=True, help="Log every stage decision")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def extract(
    ctx: click.Context,
    files: Tuple[Path, ...],
    url: str,
    min_quality: Optional[int],
    timeout_ms: Optional[int],
    disabled: Tuple[str, ...],
    debug: bool,
    as_json: bool,
) -> None:
    """Extract the main content of one or more HTML FILES."""
    settings: Config = ctx.obj["config"]
    store = SessionMetricsStore(settings.metrics)
    try:
        pipeline = GracefulDegradationPipeline.from_config(settings, metrics_store=store)
    except ValueError as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(2)

    overrides: Dict[str, Any] = {}
    if min_quality is not None:
        overrides["min_quality_score"] = min_quality
    if timeout_ms is not None:
        overrides["timeout_ms"] = timeout_ms
    if debug:
        overrides["debug"] = True
    for stage in disabled:
        overrides[f"enable_{StageKind(stage).name.lower()}"] = False

    failures = 0
    results = []
    for path in files:
        markup = path.read_text(encoding="utf-8", errors="replace")
        try:
            result = pipeline.extract_html(markup, url=url, config=overrides)
        except PipelineError as e:
            failures += 1
            err_console.print(f"[red]❌ {path}: {escape(str(e))} ({e.code})[/red]")
            continue

        if as_json:
            results.append({"file": str(path), **result.to_dict()})
        else:
            _print_result(path, result)

    if as_json:
        payload: Any = results[0] if len(files) == 1 and results else results
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    elif len(files) > 1:
        _print_session_summary(store)

    if failures:
        sys.exit(1)


@cli.command()
def presets() -> None:
    """List the readability content-type presets."""
    table = Table(title="Readability Presets")
    table.add_column("Preset", style="cyan", no_wrap=True)
    table.add_column("Threshold", justify="right", no_wrap=True)
    table.add_column("URL patterns", style="magenta")
    table.add_column("Description")

    for preset in (*PRESETS, DEFAULT_PRESET):
        patterns = ", ".join(pattern.pattern for pattern in preset.url_patterns) or "-"
        table.add_row(preset.name, str(preset.char_threshold), patterns, preset.description)
    console.print(table)


def _print_result(path: Path, result: PipelineResult) -> None:
    fallbacks = ", ".join(result.fallbacks_used) or "none"
    header = (
        f"[bold]{escape(result.metadata.title or path.name)}[/bold]\n"
        f"stage: [cyan]{result.stage.value}[/cyan]  score: [green]{result.quality_score}[/green]  "
        f"fallbacks: [yellow]{fallbacks}[/yellow]  time: {result.elapsed_ms:.1f}ms"
    )
    console.print(Panel(header, title=escape(str(path)), expand=False))
    console.print(result.content, markup=False, highlight=False)


def _print_session_summary(store: SessionMetricsStore) -> None:
    snapshot = store.snapshot()
    stats = store.performance_percentiles()

    table = Table(title="Session Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Wins", justify="right")
    table.add_column("Share", justify="right")
    for stage, count in snapshot.stage_counts.items():
        table.add_row(stage, str(count), f"{snapshot.success_rates[stage]}%")
    console.print(table)
    console.print(
        f"documents: {snapshot.totals}  avg score: {snapshot.average_quality_score}  "
        f"avg time: {snapshot.average_elapsed_ms}ms  p50: {stats.p50:.1f}ms  p95: {stats.p95:.1f}ms"
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
