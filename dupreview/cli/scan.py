"""Scan command for folder and vault reviews.

Handles scan execution, cached result reuse and result display.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from dupreview.cli.utils import (
    DEFAULT_CONFIG_PATH,
    build_orchestrator,
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_config,
)
from dupreview.orchestration.result import ReviewResult
from dupreview.output.review_formatter import ReviewFormatter


@handle_errors
def scan_command(
    scope: Optional[str] = typer.Argument(
        None, help="Folder to scan, relative to the vault (default: entire vault)"
    ),
    refine: Optional[bool] = typer.Option(
        None,
        "--refine/--no-refine",
        help="Compare note content (default: from settings)",
    ),
    rebuild: bool = typer.Option(
        False, "--rebuild", help="Ignore the cached result and rescan"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    report: Optional[Path] = typer.Option(
        None, "--report", help="Write a Markdown review report to this path"
    ),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Find duplicates in a folder or the entire vault."""
    config = load_config(config_path, vault)
    orchestrator = build_orchestrator(config)

    if rebuild:
        result = asyncio.run(orchestrator.build_cache(scope, refine=refine))
    else:
        result = asyncio.run(orchestrator.start_review(scope, refine=refine))

    formatter = ReviewFormatter(config.settings.max_comparison_panes)
    display_result(result, formatter, json_output)

    if report and not result.aborted:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(formatter.generate_report(result), encoding="utf-8")
        if not json_output:
            display_success(f"Report written to {report}")


def display_result(
    result: ReviewResult, formatter: ReviewFormatter, json_output: bool
) -> None:
    """Print a review result in the requested format."""
    if json_output:
        typer.echo(formatter.format_json(result))
        return

    if result.aborted:
        display_warning(formatter.format_text(result))
        return

    if not result.groups:
        display_success(f"No duplicates found in {result.display_scope}")
        return

    if result.from_cache:
        display_info("Using cached results (run with --rebuild to rescan)")
    typer.echo(formatter.format_text(result))
