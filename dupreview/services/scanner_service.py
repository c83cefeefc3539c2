"""
Duplicate scanner.

Runs the detection pipeline over a list of documents:
1. Title candidates from an inverted word index
2. Exclusion filtering from front matter
3. Optional content refinement
4. Grouping by normalized title

All stages are cooperative: they yield to the event loop after each unit
of work and stop quietly when the cancellation token is set.
"""

import asyncio
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Set

import structlog

from dupreview.models.cache import ROOT_SCOPE
from dupreview.models.config import ReviewerSettings
from dupreview.models.document import Document
from dupreview.models.duplicate import DuplicateCandidate, DuplicateGroup
from dupreview.models.scan import (
    CancellationToken,
    ProgressCallback,
    ScanProgress,
    ScanStage,
    is_cancelled,
)
from dupreview.observability.metrics import (
    CANDIDATES_FOUND,
    CONTENT_READ_ERRORS,
    DOCUMENTS_SCANNED,
)
from dupreview.services.exclusion_service import ExclusionResolver
from dupreview.utils.similarity import (
    content_similarity,
    jaccard_similarity,
    normalize_title,
    title_word_set,
)

logger = structlog.get_logger()


def _report(
    on_progress: Optional[ProgressCallback],
    stage: ScanStage,
    current: int = 0,
    total: int = 0,
) -> None:
    if on_progress is None:
        return
    try:
        on_progress(ScanProgress(stage=stage, current=current, total=total))
    except Exception as e:
        logger.warning("progress_callback_failed", stage=stage.value, error=str(e))


def find_by_pattern(files: Iterable[Document], patterns: Iterable[str]) -> List[Document]:
    """
    Documents whose basename contains any pattern (case-insensitive).

    Args:
        files: Documents to filter
        patterns: Substrings to look for

    Returns:
        Matching documents in input order
    """
    lowered = [p.lower() for p in patterns if p]
    if not lowered:
        return []
    return [f for f in files if any(p in f.basename.lower() for p in lowered)]


def group_duplicates(candidates: Iterable[DuplicateCandidate]) -> List[DuplicateGroup]:
    """
    Group candidates by the normalized title of their first file.

    Returns:
        Groups sorted by file count, largest first
    """
    groups: Dict[str, DuplicateGroup] = {}
    for candidate in candidates:
        key = normalize_title(candidate.file1.basename)
        group = groups.get(key)
        if group is None:
            group = DuplicateGroup(normalized_title=key)
            groups[key] = group
        group.add_candidate(candidate)

    return sorted(groups.values(), key=lambda g: g.file_count, reverse=True)


class DuplicateScanner:
    """
    Finds and groups likely duplicate documents.

    Stateless between scans apart from its collaborators, so one instance
    can serve concurrent scans of different scopes.
    """

    def __init__(
        self,
        store: Any,
        exclusion_resolver: Optional[ExclusionResolver] = None,
    ):
        """
        Initialize scanner.

        Args:
            store: Document store used to collect scope documents
            exclusion_resolver: Resolver for front matter exclusions
                (defaults to one over ``store``)
        """
        self.store = store
        self.exclusion_resolver = exclusion_resolver or ExclusionResolver(store)

    # ==================== Stage 1: Title Candidates ====================

    async def find_title_duplicates(
        self,
        files: List[Document],
        threshold: float,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[DuplicateCandidate]:
        """
        Find pairs of documents with similar titles.

        Each file is compared only with earlier files sharing at least one
        title word, so the earlier file is always ``file1``.

        Args:
            files: Documents in scan order
            threshold: Minimum title similarity (inclusive)
            cancel_token: Stops the scan when cancelled
            on_progress: Receives COMPARING progress after each file

        Returns:
            Candidates sorted by title similarity, highest first
            (empty if cancelled)
        """
        word_sets = [title_word_set(f.basename) for f in files]
        index: Dict[str, List[int]] = defaultdict(list)
        candidates: List[DuplicateCandidate] = []
        total = len(files)

        for i, file in enumerate(files):
            if is_cancelled(cancel_token):
                logger.debug("title_scan_cancelled", processed=i, total=total)
                return []

            words = word_sets[i]
            seen: Set[int] = set()
            for word in words:
                seen.update(index.get(word, ()))

            for j in sorted(seen):
                score = jaccard_similarity(words, word_sets[j])
                if score >= threshold:
                    candidates.append(
                        DuplicateCandidate(
                            file1=files[j], file2=file, title_similarity=score
                        )
                    )

            for word in words:
                index[word].append(i)

            DOCUMENTS_SCANNED.inc()
            _report(on_progress, ScanStage.COMPARING, i + 1, total)
            await asyncio.sleep(0)

        candidates.sort(key=lambda c: c.title_similarity, reverse=True)
        CANDIDATES_FOUND.labels(stage="title").inc(len(candidates))
        return candidates

    # ==================== Stage 2: Exclusions ====================

    async def filter_exclusions(
        self,
        candidates: List[DuplicateCandidate],
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[DuplicateCandidate]:
        """Drop candidates excluded by either document's front matter.

        Returns:
            Remaining candidates (empty if cancelled)
        """
        if not candidates:
            return []

        participants: Dict[str, Document] = {}
        for c in candidates:
            participants.setdefault(c.file1.path, c.file1)
            participants.setdefault(c.file2.path, c.file2)

        exclusion_map = await self.exclusion_resolver.build_exclusion_map(
            participants.values(), cancel_token=cancel_token
        )
        if is_cancelled(cancel_token):
            return []

        kept = self.exclusion_resolver.filter_excluded_candidates(
            candidates, exclusion_map
        )
        CANDIDATES_FOUND.labels(stage="excluded").inc(len(candidates) - len(kept))
        return kept

    # ==================== Stage 3: Content Refinement ====================

    async def refine_with_content(
        self,
        candidates: List[DuplicateCandidate],
        content_threshold: float,
        max_chars: int = 1000,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[DuplicateCandidate]:
        """
        Score candidates by content similarity.

        A candidate whose documents cannot be read keeps no content score
        and is marked not likely a duplicate.

        Returns:
            Refined candidates sorted by title plus content similarity,
            highest first (empty if cancelled)
        """
        refined: List[DuplicateCandidate] = []
        total = len(candidates)

        for i, candidate in enumerate(candidates):
            if is_cancelled(cancel_token):
                logger.debug("refinement_cancelled", processed=i, total=total)
                return []

            try:
                content1 = await candidate.file1.read_content()
                content2 = await candidate.file2.read_content()
            except Exception as e:
                logger.warning(
                    "content_read_failed",
                    file1=candidate.file1.path,
                    file2=candidate.file2.path,
                    error=str(e),
                )
                CONTENT_READ_ERRORS.inc()
                refined.append(
                    DuplicateCandidate(
                        file1=candidate.file1,
                        file2=candidate.file2,
                        title_similarity=candidate.title_similarity,
                        content_similarity=None,
                        likely_duplicate=False,
                    )
                )
            else:
                score = content_similarity(content1, content2, max_chars)
                refined.append(
                    DuplicateCandidate(
                        file1=candidate.file1,
                        file2=candidate.file2,
                        title_similarity=candidate.title_similarity,
                        content_similarity=score,
                        likely_duplicate=score >= content_threshold,
                    )
                )

            _report(on_progress, ScanStage.REFINING, i + 1, total)
            await asyncio.sleep(0)

        refined.sort(key=lambda c: c.combined_score, reverse=True)
        CANDIDATES_FOUND.labels(stage="likely_duplicate").inc(
            sum(1 for c in refined if c.likely_duplicate)
        )
        return refined

    # ==================== Stage 4: Grouping ====================

    def group_duplicates(
        self, candidates: List[DuplicateCandidate]
    ) -> List[DuplicateGroup]:
        return group_duplicates(candidates)

    def find_by_pattern(
        self, files: List[Document], patterns: Iterable[str]
    ) -> List[Document]:
        return find_by_pattern(files, patterns)

    # ==================== Pipeline ====================

    async def scan_documents(
        self,
        files: List[Document],
        settings: ReviewerSettings,
        refine: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[DuplicateGroup]:
        """
        Run the full pipeline over already collected documents.

        Args:
            files: Documents in scan order
            settings: Thresholds and content options
            refine: Run content refinement (defaults to the settings flag)
            cancel_token: Stops the scan when cancelled
            on_progress: Progress event receiver

        Returns:
            Duplicate groups, or an empty list when cancelled
        """
        if refine is None:
            refine = settings.enable_content_similarity

        if len(files) < 2:
            _report(on_progress, ScanStage.DONE)
            return []

        _report(on_progress, ScanStage.COLLECTING, len(files), len(files))

        candidates = await self.find_title_duplicates(
            files,
            settings.title_similarity_threshold,
            cancel_token=cancel_token,
            on_progress=on_progress,
        )
        if is_cancelled(cancel_token):
            return []

        _report(on_progress, ScanStage.FILTERING, 0, len(candidates))
        candidates = await self.filter_exclusions(candidates, cancel_token=cancel_token)

        if refine and candidates:
            candidates = await self.refine_with_content(
                candidates,
                settings.content_similarity_threshold,
                settings.content_chars_to_analyze,
                cancel_token=cancel_token,
                on_progress=on_progress,
            )

        if is_cancelled(cancel_token):
            return []

        _report(on_progress, ScanStage.GROUPING, 0, len(candidates))
        groups = group_duplicates(candidates)
        _report(on_progress, ScanStage.DONE, len(groups), len(groups))

        logger.info(
            "scan_complete",
            files=len(files),
            candidates=len(candidates),
            groups=len(groups),
            refined=bool(refine),
        )
        return groups

    async def scan_for_duplicates(
        self,
        scope: Optional[str] = ROOT_SCOPE,
        settings: Optional[ReviewerSettings] = None,
        refine: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[DuplicateGroup]:
        """
        Collect a scope's documents and scan them.

        Raises:
            ScopeNotFoundError: If the scope folder does not exist
        """
        settings = settings or ReviewerSettings()
        files = self.store.list_documents(scope, settings.ignored_folders)
        logger.info("scan_started", scope=scope, files=len(files))
        return await self.scan_documents(
            files,
            settings,
            refine=refine,
            cancel_token=cancel_token,
            on_progress=on_progress,
        )
