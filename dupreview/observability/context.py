"""Scan ID context management for log correlation.

Every review run (folder scan, cache build, pattern review) gets a scan
ID stored in a ContextVar, so log entries emitted while the run yields
to the event loop can still be attributed to it.

Usage:
    from dupreview.observability.context import scan_id_context

    with scan_id_context() as scan_id:
        groups = await scanner.scan_for_duplicates(...)
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_scan_id_var: ContextVar[Optional[str]] = ContextVar("scan_id", default=None)


def new_scan_id() -> str:
    """Generate a short random scan ID."""
    return uuid.uuid4().hex[:12]


def set_scan_id(scan_id: Optional[str] = None) -> str:
    """Set the scan ID for the current context.

    If no ID is provided, generates a new one.

    Args:
        scan_id: Optional scan ID. If None, one is generated.

    Returns:
        The scan ID that was set.
    """
    if scan_id is None:
        scan_id = new_scan_id()

    _scan_id_var.set(scan_id)
    return scan_id


def get_scan_id() -> Optional[str]:
    """Get the current scan ID, or None outside a review run."""
    return _scan_id_var.get()


def clear_scan_id() -> None:
    """Reset the scan ID to None."""
    _scan_id_var.set(None)


@contextmanager
def scan_id_context(scan_id: Optional[str] = None) -> Generator[str, None, None]:
    """Context manager for scoped scan IDs.

    Sets the scan ID on entry and restores the previous value on exit,
    so nested runs (a cache build inside a review) keep their own IDs.

    Args:
        scan_id: Optional scan ID. If None, one is generated.

    Yields:
        The scan ID being used in this context.
    """
    if scan_id is None:
        scan_id = new_scan_id()

    token = _scan_id_var.set(scan_id)
    try:
        yield scan_id
    finally:
        _scan_id_var.reset(token)
