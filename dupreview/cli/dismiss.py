"""Dismiss commands for groups that are not duplicates."""

from pathlib import Path
from typing import List, Optional

import typer

from dupreview.cli.utils import (
    DEFAULT_CONFIG_PATH,
    build_orchestrator,
    display_error,
    display_success,
    display_warning,
    handle_errors,
    load_config,
)

# Create dismiss sub-app
dismiss_app = typer.Typer(help="Manage dismissed duplicate groups")


@dismiss_app.command(name="add")
@handle_errors
def dismiss_add(
    paths: List[str] = typer.Argument(..., help="Vault-relative paths of the group"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Hide a group while it contains exactly these files."""
    if len(set(paths)) < 2:
        display_error("A group needs at least two distinct paths")
        raise typer.Exit(code=1)

    config = load_config(config_path, vault)
    orchestrator = build_orchestrator(config)

    if orchestrator.dismiss(paths):
        display_success(f"Dismissed group of {len(set(paths))} files")
    else:
        display_warning("Group was already dismissed")


@dismiss_app.command(name="list")
@handle_errors
def dismiss_list(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Display dismissed groups."""
    config = load_config(config_path, vault)
    groups = build_orchestrator(config).dismissal_service.dismissed_groups()

    typer.echo(f"{len(groups)} dismissed groups:")
    for group in groups:
        typer.echo(f" - {', '.join(group)}")


@dismiss_app.command(name="clear")
@handle_errors
def dismiss_clear(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Show all dismissed groups again."""
    config = load_config(config_path, vault)
    build_orchestrator(config).dismissal_service.clear()
    display_success("Cleared dismissed groups")
