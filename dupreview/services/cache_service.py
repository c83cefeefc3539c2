"""
Scan result cache.

Keeps one entry per scanned scope so repeated reviews of an unchanged
folder skip the scan. An entry is stale when:
1. A changed ("dirty") path lies inside its scope
2. The scope's file count or newest modification time differs
3. The similarity settings differ from the ones it was built with

Entries store file paths only; groups are rebuilt against the live
document store on every hit.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

import structlog
from pydantic import ValidationError

from dupreview.models.cache import (
    CacheEntry,
    CacheStats,
    SerializedDuplicateGroup,
    SimilarityFingerprint,
    scope_covers,
)
from dupreview.models.config import ReviewerSettings
from dupreview.models.document import Document
from dupreview.models.duplicate import DuplicateGroup
from dupreview.observability.metrics import CACHE_ENTRIES, CACHE_OPERATIONS, DIRTY_PATHS
from dupreview.services.state_store import CACHE_SECTION, StateStore

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


def max_mtime(files: Iterable[Document]) -> int:
    """Newest modification time among ``files`` (0 when empty)."""
    return max((f.modified_at for f in files), default=0)


class DuplicateCacheService:
    """
    Staleness-aware cache of scan results keyed by scope.

    Call load() once before use and save() after put() or clear() to
    persist changes.
    """

    def __init__(self, state_store: StateStore, document_store: Any):
        """
        Initialize cache service.

        Args:
            state_store: Durable store holding the persisted entries
            document_store: Resolves cached paths back into documents
        """
        self.state_store = state_store
        self.document_store = document_store
        self._entries: Dict[str, CacheEntry] = {}
        self._dirty_paths: Set[str] = set()

    # ==================== Persistence ====================

    def load(self) -> None:
        """
        Load persisted entries, replacing the in-memory map.

        Corrupt data yields an empty cache; invalid entries are skipped.
        """
        raw = self.state_store.load_section(CACHE_SECTION, {})
        self._entries = {}

        if not isinstance(raw, dict):
            logger.warning("cache_data_corrupt", found=type(raw).__name__)
            self._update_gauges()
            return

        for scope, data in raw.items():
            try:
                entry = CacheEntry.model_validate(data)
            except ValidationError as e:
                logger.warning("cache_entry_invalid", scope=scope, error=str(e))
                continue
            self._entries[scope] = entry

        self._update_gauges()
        logger.debug("cache_loaded", entries=len(self._entries))

    def save(self) -> None:
        """Persist all entries (other state sections are preserved)."""
        payload = {
            scope: entry.model_dump(mode="json")
            for scope, entry in self._entries.items()
        }
        self.state_store.update(CACHE_SECTION, payload)
        logger.debug("cache_saved", entries=len(payload))

    # ==================== Validity ====================

    def is_valid(
        self,
        entry: CacheEntry,
        live_files: List[Document],
        settings: ReviewerSettings,
    ) -> bool:
        """
        Check whether a cached entry still describes the live scope.

        Args:
            entry: Cached entry
            live_files: Documents currently in the entry's scope
            settings: Current similarity settings

        Returns:
            True if the cached result can be used as is
        """
        if any(entry.covers(p) for p in self._dirty_paths):
            reason = "dirty_paths"
        elif entry.file_count != len(live_files):
            reason = "file_count"
        elif entry.max_mtime != max_mtime(live_files):
            reason = "max_mtime"
        elif not entry.settings.matches(settings):
            reason = "settings"
        else:
            return True

        logger.debug("cache_entry_stale", scope=entry.scope, reason=reason)
        return False

    # ==================== Get / Put ====================

    def get(
        self,
        scope: str,
        live_files: List[Document],
        settings: ReviewerSettings,
    ) -> Optional[List[DuplicateGroup]]:
        """
        Get cached groups for a scope.

        Stale entries are evicted.

        Returns:
            Reconstituted groups, or None on a miss
        """
        entry = self._entries.get(scope)
        if entry is None:
            CACHE_OPERATIONS.labels(operation="get", result="miss").inc()
            logger.debug("duplicate_cache_miss", scope=scope)
            return None

        if not self.is_valid(entry, live_files, settings):
            del self._entries[scope]
            self._update_gauges()
            CACHE_OPERATIONS.labels(operation="get", result="stale").inc()
            return None

        groups = self.reconstitute(entry, live_files)
        CACHE_OPERATIONS.labels(operation="get", result="hit").inc()
        logger.info("duplicate_cache_hit", scope=scope, groups=len(groups))
        return groups

    def put(
        self,
        scope: str,
        files: List[Document],
        groups: List[DuplicateGroup],
        settings: ReviewerSettings,
    ) -> CacheEntry:
        """
        Store a scan result for a scope.

        Only paths are kept; candidates are not persisted.
        """
        entry = CacheEntry(
            scope=scope,
            scan_timestamp=_now_ms(),
            file_count=len(files),
            max_mtime=max_mtime(files),
            groups=[
                SerializedDuplicateGroup(
                    normalized_title=g.normalized_title,
                    original_titles=sorted(g.original_titles),
                    file_paths=g.paths,
                )
                for g in groups
            ],
            settings=SimilarityFingerprint.from_settings(settings),
        )
        self._entries[scope] = entry
        self._update_gauges()
        CACHE_OPERATIONS.labels(operation="put", result="stored").inc()
        logger.info("duplicate_cache_stored", scope=scope, groups=len(groups))
        return entry

    def reconstitute(
        self,
        entry: CacheEntry,
        live_files: Optional[List[Document]] = None,
    ) -> List[DuplicateGroup]:
        """
        Rebuild groups from a cached entry.

        Paths missing from the store are skipped, and groups left with
        fewer than two files are dropped.
        """
        known: Mapping[str, Document] = {f.path: f for f in live_files or []}
        groups: List[DuplicateGroup] = []

        for serialized in entry.groups:
            group = DuplicateGroup(
                normalized_title=serialized.normalized_title,
                original_titles=set(serialized.original_titles),
            )
            for path in serialized.file_paths:
                document = known.get(path) or self.document_store.get_document(path)
                if document is not None:
                    group.add_file(document)
            if not group.is_resolved:
                groups.append(group)

        return groups

    def get_entry(self, scope: str) -> Optional[CacheEntry]:
        return self._entries.get(scope)

    def entries(self) -> Mapping[str, CacheEntry]:
        """Read-only view of the cached entries."""
        return dict(self._entries)

    # ==================== Dirty Paths ====================

    def mark_dirty(self, *paths: str) -> None:
        """Record changed paths so covering entries revalidate."""
        self._dirty_paths.update(p for p in paths if p)
        DIRTY_PATHS.set(len(self._dirty_paths))

    def clear_dirty_paths_for_scope(self, scope: str) -> None:
        """Forget dirty paths covered by a freshly built scope."""
        self._dirty_paths = {p for p in self._dirty_paths if not scope_covers(scope, p)}
        DIRTY_PATHS.set(len(self._dirty_paths))

    @property
    def dirty_paths(self) -> Set[str]:
        return set(self._dirty_paths)

    # ==================== Management ====================

    def clear(self) -> None:
        """Drop all entries and dirty paths."""
        self._entries.clear()
        self._dirty_paths.clear()
        self._update_gauges()
        logger.info("duplicate_cache_cleared")

    @property
    def size(self) -> int:
        return len(self._entries)

    def _most_recent_entry(self) -> Optional[CacheEntry]:
        if not self._entries:
            return None
        return max(self._entries.values(), key=lambda e: e.scan_timestamp)

    @property
    def last_built(self) -> Optional[datetime]:
        """When the most recent entry was built."""
        entry = self._most_recent_entry()
        if entry is None:
            return None
        return datetime.fromtimestamp(entry.scan_timestamp / 1000, tz=timezone.utc)

    def most_recent_scope(self) -> Optional[str]:
        """Scope of the most recently built entry."""
        entry = self._most_recent_entry()
        return entry.scope if entry else None

    def get_stats(self) -> CacheStats:
        return CacheStats(
            entry_count=self.size,
            dirty_paths=len(self._dirty_paths),
            last_built=self.last_built,
            most_recent_scope=self.most_recent_scope(),
            scopes=sorted(self._entries),
        )

    def _update_gauges(self) -> None:
        CACHE_ENTRIES.set(len(self._entries))
        DIRTY_PATHS.set(len(self._dirty_paths))
