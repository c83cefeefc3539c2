"""Structured logging with scan ID propagation.

Configures structlog to add:
- The current scan ID to every log entry
- Component name for log filtering
- JSON or console rendering

Usage:
    from dupreview.observability.logging import get_logger, configure_logging

    # Configure at application startup
    configure_logging(level="INFO")

    # Get logger with component context
    logger = get_logger("scanner")
    logger.info("scan_started", scope="Projects")

    # Output includes scan_id automatically:
    # {"event": "scan_started", "scope": "Projects",
    #  "scan_id": "3f9c0a1b2d4e", "component": "scanner", ...}
"""

import logging
import sys
from typing import Any, Callable, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from dupreview.observability.context import get_scan_id


def add_scan_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds scan_id to log entries.

    Uses "none" outside a review run.
    """
    scan_id = get_scan_id()
    event_dict["scan_id"] = scan_id if scan_id else "none"
    return event_dict


def add_service_context_processor(
    component: str,
) -> Callable[[WrappedLogger, str, EventDict], EventDict]:
    """Create a processor that adds component name to log entries.

    Args:
        component: The component/service name

    Returns:
        A structlog processor function
    """

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["component"] = component
        return event_dict

    return processor


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Logs go to stderr so command output on stdout stays clean for
    piping (``dupreview scan --json | jq``).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON. If False, use console format.
        add_timestamp: If True, add ISO timestamp to each log entry.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_scan_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(
    component: Optional[str] = None,
    **initial_context: Any,
) -> Any:
    """Get a structured logger with optional component context.

    Args:
        component: Optional component/service name to include in logs
        **initial_context: Additional context to bind to all log entries

    Returns:
        A bound structlog logger
    """
    # Lazy proxy, resolved against the current configuration on each call
    if component:
        initial_context["component"] = component

    return structlog.get_logger(**initial_context)


def bind_context(**context: Any) -> None:
    """Bind context to all subsequent log entries in the current context.

    Uses structlog's contextvars, so bound values follow the coroutine
    across ``await`` points.

    Example:
        bind_context(scope="Projects")
        logger.info("scan_started")  # Includes scope
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context from structlog contextvars."""
    structlog.contextvars.clear_contextvars()
