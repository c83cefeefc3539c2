"""Prometheus metrics definitions for the duplicate reviewer.

Defines counters, gauges, and histograms for monitoring:
- Scan throughput and outcome
- Cache hits, misses and evictions
- Candidate volume per stage

Usage:
    from dupreview.observability.metrics import SCANS_TOTAL, SCAN_DURATION

    SCANS_TOTAL.labels(mode="folder", status="completed").inc()

    with SCAN_DURATION.labels(mode="folder").time():
        await scanner.scan_for_duplicates(...)
"""

from typing import Any, Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

SCANS_TOTAL = Counter(
    name="dupreview_scans_total",
    documentation="Total number of review runs",
    labelnames=["mode", "status"],  # folder/build/pattern, completed/cached/aborted
    registry=REGISTRY,
)

CACHE_OPERATIONS = Counter(
    name="dupreview_cache_operations_total",
    documentation="Scan cache operations",
    labelnames=["operation", "result"],  # get/put, hit/miss/stale/stored
    registry=REGISTRY,
)

DOCUMENTS_SCANNED = Counter(
    name="dupreview_documents_scanned_total",
    documentation="Documents processed during candidate generation",
    registry=REGISTRY,
)

CANDIDATES_FOUND = Counter(
    name="dupreview_candidates_total",
    documentation="Duplicate candidates per pipeline stage",
    labelnames=["stage"],  # title, excluded, likely_duplicate
    registry=REGISTRY,
)

CONTENT_READ_ERRORS = Counter(
    name="dupreview_content_read_errors_total",
    documentation="Candidates whose content could not be read",
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

CACHE_ENTRIES = Gauge(
    name="dupreview_cache_entries",
    documentation="Number of cached scan results",
    registry=REGISTRY,
)

DIRTY_PATHS = Gauge(
    name="dupreview_dirty_paths",
    documentation="Changed paths awaiting cache revalidation",
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

SCAN_BUCKETS = (0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, float("inf"))

SCAN_DURATION = Histogram(
    name="dupreview_scan_duration_seconds",
    documentation="Wall-clock duration of uncached scans",
    labelnames=["mode"],
    buckets=SCAN_BUCKETS,
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text format."""
    return generate_latest(REGISTRY)


class MetricsContext:
    """Context manager for timing operations and updating metrics.

    Example:
        with MetricsContext(
            histogram=SCAN_DURATION.labels(mode="folder"),
            success_counter=SCANS_TOTAL.labels(mode="folder", status="completed"),
            failure_counter=SCANS_TOTAL.labels(mode="folder", status="failed"),
        ) as ctx:
            groups = await scan()
            ctx.mark_success()
    """

    def __init__(
        self,
        histogram: Optional[Histogram] = None,
        success_counter: Optional[Counter] = None,
        failure_counter: Optional[Counter] = None,
    ):
        self._histogram = histogram
        self._success_counter = success_counter
        self._failure_counter = failure_counter
        self._timer: Any = None
        self._success = False
        self._skipped = False

    def __enter__(self) -> "MetricsContext":
        if self._histogram:
            self._timer = self._histogram.time()
            self._timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._timer:
            self._timer.__exit__(exc_type, exc_val, exc_tb)

        if self._skipped:
            return
        if exc_type is not None or not self._success:
            if self._failure_counter:
                self._failure_counter.inc()
        elif self._success_counter:
            self._success_counter.inc()

    def mark_success(self) -> None:
        """Mark the operation as successful."""
        self._success = True

    def mark_skipped(self) -> None:
        """Record neither success nor failure (e.g. an aborted scan)."""
        self._skipped = True
