"""Review orchestration.

Ties the scanner, the scan cache and the dismissal record together:
cached results are served when still valid, otherwise the scope is
scanned and the fresh result cached before dismissals are applied.

At most one scan runs per scope. Starting a new scan for a scope
cancels the one in flight; the superseded scan returns an aborted,
uncached result.
"""

import asyncio
from typing import AsyncIterable, Dict, Iterable, List, Optional

from dupreview.models.cache import ROOT_SCOPE
from dupreview.models.config import ReviewerSettings
from dupreview.models.document import Document
from dupreview.models.duplicate import DuplicateGroup
from dupreview.models.events import ChangeEvent
from dupreview.models.scan import CancellationToken, ProgressCallback
from dupreview.observability.context import scan_id_context
from dupreview.observability.logging import get_logger
from dupreview.observability.metrics import SCAN_DURATION, SCANS_TOTAL, MetricsContext
from dupreview.orchestration.result import ReviewResult
from dupreview.services.cache_service import DuplicateCacheService
from dupreview.services.dismissal_service import DismissalService
from dupreview.services.document_store import FilesystemDocumentStore, normalize_scope
from dupreview.services.exclusion_service import ExclusionResolver
from dupreview.services.scanner_service import DuplicateScanner
from dupreview.utils.exceptions import ScopeNotFoundError

logger = get_logger("orchestrator")


class ReviewOrchestrator:
    """Entry point for folder, pattern and cached reviews.

    Usage:
        orchestrator = ReviewOrchestrator(store, settings, cache, dismissals)
        result = await orchestrator.start_review("Projects")
        for group in result.groups:
            ...
    """

    def __init__(
        self,
        document_store: FilesystemDocumentStore,
        settings: ReviewerSettings,
        cache_service: DuplicateCacheService,
        dismissal_service: DismissalService,
        scanner: Optional[DuplicateScanner] = None,
    ):
        self.document_store = document_store
        self.settings = settings
        self.cache_service = cache_service
        self.dismissal_service = dismissal_service
        self.scanner = scanner or DuplicateScanner(
            document_store,
            ExclusionResolver(document_store, settings.exclusion_key),
        )
        self._scan_tokens: Dict[str, CancellationToken] = {}

    # ==================== Folder Review ====================

    async def start_review(
        self,
        scope: Optional[str] = ROOT_SCOPE,
        refine: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ReviewResult:
        """Review a scope, serving the cached result when still valid.

        Args:
            scope: Folder path or ROOT_SCOPE for the whole vault
            refine: Run content refinement (defaults to the settings flag)
            cancel_token: Token to abort the scan cooperatively
            on_progress: Progress event receiver

        Returns:
            Review result with dismissed groups removed

        Raises:
            ScopeNotFoundError: If the scope folder does not exist
        """
        scope = normalize_scope(scope)

        with scan_id_context():
            files = self._collect(scope)

            cached = self.cache_service.get(scope, files, self.settings)
            if cached is not None:
                SCANS_TOTAL.labels(mode="folder", status="cached").inc()
                return ReviewResult(
                    scope=scope,
                    groups=self.dismissal_service.filter_dismissed(cached),
                    files_scanned=len(files),
                    from_cache=True,
                )

            return await self._scan_and_cache(
                scope, files, "folder", refine, cancel_token, on_progress
            )

    async def build_cache(
        self,
        scope: Optional[str] = ROOT_SCOPE,
        refine: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ReviewResult:
        """Rescan a scope and replace its cached result unconditionally."""
        scope = normalize_scope(scope)

        with scan_id_context():
            files = self._collect(scope)
            return await self._scan_and_cache(
                scope, files, "build", refine, cancel_token, on_progress
            )

    async def _scan_and_cache(
        self,
        scope: str,
        files: List[Document],
        mode: str,
        refine: Optional[bool],
        cancel_token: Optional[CancellationToken],
        on_progress: Optional[ProgressCallback],
    ) -> ReviewResult:
        token = self._register_scan(scope, cancel_token)
        logger.info("review_scan_started", scope=scope, mode=mode, files=len(files))

        try:
            with MetricsContext(
                histogram=SCAN_DURATION.labels(mode=mode),
                success_counter=SCANS_TOTAL.labels(mode=mode, status="completed"),
                failure_counter=SCANS_TOTAL.labels(mode=mode, status="failed"),
            ) as ctx:
                groups = await self.scanner.scan_documents(
                    files,
                    self.settings,
                    refine=refine,
                    cancel_token=token,
                    on_progress=on_progress,
                )

                if token.cancelled:
                    ctx.mark_skipped()
                    SCANS_TOTAL.labels(mode=mode, status="aborted").inc()
                    logger.info("review_scan_aborted", scope=scope, reason=token.reason)
                    return ReviewResult(
                        scope=scope, files_scanned=len(files), aborted=True, mode=mode
                    )

                # The cache keeps every group; dismissals only affect display
                self.cache_service.put(scope, files, groups, self.settings)
                self.cache_service.clear_dirty_paths_for_scope(scope)
                self.cache_service.save()
                ctx.mark_success()
        finally:
            if self._scan_tokens.get(scope) is token:
                del self._scan_tokens[scope]

        visible = self.dismissal_service.filter_dismissed(groups)
        logger.info(
            "review_scan_complete",
            scope=scope,
            groups=len(groups),
            visible=len(visible),
        )
        return ReviewResult(
            scope=scope, groups=visible, files_scanned=len(files), mode=mode
        )

    def _register_scan(
        self, scope: str, cancel_token: Optional[CancellationToken]
    ) -> CancellationToken:
        token = cancel_token or CancellationToken()
        previous = self._scan_tokens.get(scope)
        if previous is not None and previous is not token:
            previous.cancel("superseded")
            logger.debug("review_scan_superseded", scope=scope)
        self._scan_tokens[scope] = token
        return token

    def _collect(self, scope: str) -> List[Document]:
        return self.document_store.list_documents(scope, self.settings.ignored_folders)

    # ==================== Pattern Review ====================

    async def pattern_review(
        self,
        pattern: str,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ReviewResult:
        """Review documents whose names contain ``pattern``.

        Pattern reviews are never cached. When at least two documents match
        but none pair up by title, they are returned as a single group.
        """
        token = cancel_token or CancellationToken()

        with scan_id_context():
            files = self._collect(ROOT_SCOPE)
            matches = self.scanner.find_by_pattern(files, [pattern])
            logger.info("pattern_review_started", pattern=pattern, matches=len(matches))

            candidates = await self.scanner.find_title_duplicates(
                matches,
                self.settings.title_similarity_threshold,
                cancel_token=token,
                on_progress=on_progress,
            )
            candidates = await self.scanner.filter_exclusions(
                candidates, cancel_token=token
            )
            if token.cancelled:
                SCANS_TOTAL.labels(mode="pattern", status="aborted").inc()
                return ReviewResult(scope=pattern, aborted=True, mode="pattern")

            groups = self.scanner.group_duplicates(candidates)

            if len(matches) >= 2 and not groups:
                group = DuplicateGroup(normalized_title=pattern.lower())
                for document in matches:
                    group.original_titles.add(document.basename)
                    group.add_file(document)
                groups = [group]

            SCANS_TOTAL.labels(mode="pattern", status="completed").inc()
            return ReviewResult(
                scope=pattern,
                groups=self.dismissal_service.filter_dismissed(groups),
                files_scanned=len(matches),
                mode="pattern",
            )

    # ==================== Cached Results ====================

    async def load_most_recent(self) -> Optional[ReviewResult]:
        """Result of the most recently built scope, if still valid."""
        scope = self.cache_service.most_recent_scope()
        if scope is None:
            return None

        try:
            files = self._collect(scope)
        except ScopeNotFoundError:
            logger.info("recent_scope_missing", scope=scope)
            return None

        groups = self.cache_service.get(scope, files, self.settings)
        if groups is None:
            return None

        return ReviewResult(
            scope=scope,
            groups=self.dismissal_service.filter_dismissed(groups),
            files_scanned=len(files),
            from_cache=True,
        )

    # ==================== Change Events ====================

    def handle_change(self, event: ChangeEvent) -> bool:
        """Mark the paths touched by a Markdown change event dirty.

        Returns:
            True if the event affected the cache
        """
        paths = event.markdown_paths
        if not paths:
            return False

        self.cache_service.mark_dirty(*paths)
        logger.debug("change_recorded", change=event.change_type.value, paths=paths)
        return True

    async def consume_changes(self, events: AsyncIterable[ChangeEvent]) -> int:
        """Apply a stream of change events until it ends.

        Returns:
            Number of events that marked paths dirty
        """
        applied = 0
        async for event in events:
            if self.handle_change(event):
                applied += 1
            await asyncio.sleep(0)
        return applied

    # ==================== Dismissals ====================

    def dismiss(self, paths: Iterable[str]) -> bool:
        return self.dismissal_service.dismiss(paths)

    def is_dismissed(self, paths: Iterable[str]) -> bool:
        return self.dismissal_service.is_dismissed(paths)

    def cancel_all(self, reason: str = "shutdown") -> None:
        """Cancel every scan in flight."""
        for token in self._scan_tokens.values():
            token.cancel(reason)
        self._scan_tokens.clear()
