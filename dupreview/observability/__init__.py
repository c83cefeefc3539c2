"""Observability module for the duplicate reviewer.

Provides:
- Scan ID context management for log correlation
- Structured logging with context propagation
- Prometheus metrics for scans and the scan cache

Usage:
    from dupreview.observability import (
        scan_id_context,
        get_logger,
        SCANS_TOTAL,
    )

    with scan_id_context():
        logger = get_logger("scanner")
        logger.info("scan_started", scope="Projects")

    SCANS_TOTAL.labels(mode="folder", status="completed").inc()
"""

from dupreview.observability.context import (
    set_scan_id,
    get_scan_id,
    clear_scan_id,
    new_scan_id,
    scan_id_context,
)
from dupreview.observability.logging import (
    get_logger,
    configure_logging,
    add_scan_id_processor,
    bind_context,
    clear_context,
)
from dupreview.observability.metrics import (
    # Counters
    SCANS_TOTAL,
    CACHE_OPERATIONS,
    DOCUMENTS_SCANNED,
    CANDIDATES_FOUND,
    CONTENT_READ_ERRORS,
    # Gauges
    CACHE_ENTRIES,
    DIRTY_PATHS,
    # Histograms
    SCAN_DURATION,
    # Utilities
    REGISTRY,
    MetricsContext,
    get_metrics_text,
)

__all__ = [
    # Context
    "set_scan_id",
    "get_scan_id",
    "clear_scan_id",
    "new_scan_id",
    "scan_id_context",
    # Logging
    "get_logger",
    "configure_logging",
    "add_scan_id_processor",
    "bind_context",
    "clear_context",
    # Metrics
    "SCANS_TOTAL",
    "CACHE_OPERATIONS",
    "DOCUMENTS_SCANNED",
    "CANDIDATES_FOUND",
    "CONTENT_READ_ERRORS",
    "CACHE_ENTRIES",
    "DIRTY_PATHS",
    "SCAN_DURATION",
    "REGISTRY",
    "MetricsContext",
    "get_metrics_text",
]
