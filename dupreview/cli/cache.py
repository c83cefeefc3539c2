"""Cache commands for inspecting and clearing stored scan results."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from dupreview.cli.scan import display_result
from dupreview.cli.utils import (
    DEFAULT_CONFIG_PATH,
    build_orchestrator,
    display_success,
    display_warning,
    handle_errors,
    load_config,
)
from dupreview.models.cache import ROOT_SCOPE
from dupreview.output.review_formatter import ReviewFormatter

# Create cache sub-app
cache_app = typer.Typer(help="Inspect and clear cached scan results")


@cache_app.command(name="status")
@handle_errors
def cache_status(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Display cached scopes and when they were built."""
    config = load_config(config_path, vault)
    cache_service = build_orchestrator(config).cache_service
    stats = cache_service.get_stats()

    typer.echo(f"Cache contains {stats.entry_count} scopes:")
    for scope, entry in sorted(cache_service.entries().items()):
        name = "Entire vault" if scope == ROOT_SCOPE else scope
        typer.echo(
            f" - {name}: {len(entry.groups)} groups in {entry.file_count} files"
        )

    if stats.last_built:
        typer.echo(f"Last built: {stats.last_built.strftime('%Y-%m-%d %H:%M:%S UTC')}")


@cache_app.command(name="clear")
@handle_errors
def cache_clear(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Delete all cached scan results (dismissals are kept)."""
    config = load_config(config_path, vault)
    cache_service = build_orchestrator(config).cache_service
    removed = cache_service.size
    cache_service.clear()
    cache_service.save()
    display_success(f"Cleared {removed} cached scopes")


@handle_errors
def recent_command(
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Show the most recently built result if it is still current."""
    config = load_config(config_path, vault)
    orchestrator = build_orchestrator(config)
    result = asyncio.run(orchestrator.load_most_recent())

    if result is None:
        display_warning("No current cached results. Run 'dupreview scan' first.")
        return

    formatter = ReviewFormatter(config.settings.max_comparison_panes)
    display_result(result, formatter, json_output)
