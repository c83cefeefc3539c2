"""Pattern command for name-based reviews."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from dupreview.cli.scan import display_result
from dupreview.cli.utils import (
    DEFAULT_CONFIG_PATH,
    build_orchestrator,
    display_info,
    display_warning,
    handle_errors,
    load_config,
)
from dupreview.output.review_formatter import ReviewFormatter


@handle_errors
def pattern_command(
    pattern: Optional[str] = typer.Argument(
        None, help="Name fragment to match (omit to list common patterns)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Find duplicates among notes whose names match a pattern."""
    config = load_config(config_path, vault)

    if not pattern or not pattern.strip():
        patterns = config.settings.common_patterns
        if not patterns:
            display_warning("No common patterns configured")
            return
        display_info("Common patterns:")
        for item in patterns:
            typer.echo(f"  {item}")
        return

    orchestrator = build_orchestrator(config)
    result = asyncio.run(orchestrator.pattern_review(pattern.strip()))

    formatter = ReviewFormatter(config.settings.max_comparison_panes)
    display_result(result, formatter, json_output)
