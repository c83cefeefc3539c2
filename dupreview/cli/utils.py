"""Shared CLI utilities.

Provides configuration loading, service wiring and consistent error
display for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Callable, Optional, TypeVar

import structlog
import typer

from dupreview.models.config import AppConfig
from dupreview.observability.logging import configure_logging
from dupreview.orchestration.orchestrator import ReviewOrchestrator
from dupreview.services.cache_service import DuplicateCacheService
from dupreview.services.config_manager import ConfigManager, ConfigValidationError
from dupreview.services.dismissal_service import DismissalService
from dupreview.services.document_store import FilesystemDocumentStore
from dupreview.services.state_store import StateStore

# Configure structured logging
configure_logging()
logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = "config/dupreview.yaml"

# Type variable for decorator
F = TypeVar("F", bound=Callable)


def load_config(config_path: Path, vault: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration, then apply its logging settings.

    Args:
        config_path: Path to configuration file.
        vault: Vault root overriding the configured one.

    Returns:
        Validated AppConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(
        config_path=str(config_path),
        vault_root=str(vault) if vault else None,
    )
    try:
        config = config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    configure_logging(level=config.logging.level, json_output=config.logging.json_output)
    return config


def state_dir_for(config: AppConfig) -> Path:
    """State directory; relative paths live inside the vault."""
    state_dir = Path(config.state.state_dir).expanduser()
    if state_dir.is_absolute():
        return state_dir
    return Path(config.vault_root).expanduser() / state_dir


def build_orchestrator(config: AppConfig) -> ReviewOrchestrator:
    """Wire the document store, persisted state and scanner for a vault.

    Cached scan results and dismissals are loaded before returning.
    """
    document_store = FilesystemDocumentStore(Path(config.vault_root))
    state_store = StateStore(state_dir_for(config), enabled=config.state.enabled)

    cache_service = DuplicateCacheService(state_store, document_store)
    cache_service.load()

    dismissal_service = DismissalService(state_store)
    dismissal_service.load()

    return ReviewOrchestrator(
        document_store=document_store,
        settings=config.settings,
        cache_service=cache_service,
        dismissal_service=dismissal_service,
    )


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages.

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function with error handling.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    """Display a success message.

    Args:
        message: Message to display.
    """
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    """Display a warning message."""
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    """Display an error message."""
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    """Display an info message."""
    typer.secho(message, fg=typer.colors.CYAN)
