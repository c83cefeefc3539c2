"""Folder listing and group comparison commands."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from dupreview.cli.utils import (
    DEFAULT_CONFIG_PATH,
    build_orchestrator,
    display_error,
    handle_errors,
    load_config,
)
from dupreview.models.cache import ROOT_SCOPE
from dupreview.services.document_store import FilesystemDocumentStore


@handle_errors
def folders_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """List folders that can be scanned."""
    config = load_config(config_path, vault)
    store = FilesystemDocumentStore(Path(config.vault_root))

    for folder in store.list_folders(config.settings.ignored_folders):
        typer.echo("Entire vault" if folder == ROOT_SCOPE else folder)


@handle_errors
def compare_command(
    scope: str = typer.Argument(..., help="Scanned folder ('/' for the entire vault)"),
    index: int = typer.Argument(..., min=1, help="Group number as listed by scan"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
    ),
    vault: Optional[Path] = typer.Option(
        None, "--vault", help="Vault root (overrides the config)"
    ),
):
    """Print the files of one group for side-by-side comparison.

    At most max_comparison_panes absolute paths are printed, one per line.
    """
    config = load_config(config_path, vault)
    orchestrator = build_orchestrator(config)
    result = asyncio.run(orchestrator.start_review(scope))

    if index > len(result.groups):
        display_error(f"No group {index} in {result.display_scope}")
        raise typer.Exit(code=1)

    group = result.groups[index - 1]
    store = orchestrator.document_store
    for document in group.files[: config.settings.max_comparison_panes]:
        typer.echo(str(store.absolute_path(document.path)))
