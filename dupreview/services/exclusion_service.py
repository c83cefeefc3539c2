"""
Exclusion resolution for duplicate candidates.

A document can declare, in its front matter, other documents it must
never be paired with:

    ---
    duplicate_exclude:
      - "[[Meeting Notes 2023]]"
      - Archive/Old Plan
    ---

Targets are wiki links or paths, resolved against the whole vault.
Exclusions are symmetric: if either side lists the other, the pair is
dropped.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Set

import structlog

from dupreview.models.document import MARKDOWN_EXTENSION, Document
from dupreview.models.duplicate import DuplicateCandidate
from dupreview.models.scan import CancellationToken, is_cancelled

logger = structlog.get_logger()


def _clean_target(raw: str) -> str:
    """Strip wiki-link decoration and alias from a single target."""
    target = raw.strip()
    if target.startswith("[["):
        target = target[2:]
    if target.endswith("]]"):
        target = target[:-2]
    target = target.split("|", 1)[0]
    return target.strip()


def flatten_targets(value: Any) -> List[str]:
    """
    Flatten a front matter value into cleaned target strings.

    Strings and (nested) lists are accepted; other scalars inside lists
    are skipped and any other shape yields no targets.
    """
    if isinstance(value, str):
        cleaned = _clean_target(value)
        return [cleaned] if cleaned else []

    if isinstance(value, list):
        targets: List[str] = []
        for item in value:
            targets.extend(flatten_targets(item))
        return targets

    return []


class ExclusionResolver:
    """
    Builds per-scan exclusion maps from document front matter.

    The map is rebuilt for every scan and never cached.
    """

    def __init__(self, store: Any, exclusion_key: str = "duplicate_exclude"):
        """
        Initialize resolver.

        Args:
            store: Document store providing all_documents() and read_frontmatter()
            exclusion_key: Front matter key holding the exclusion targets
        """
        self.store = store
        self.exclusion_key = exclusion_key

    def resolve_target(
        self,
        raw: str,
        by_path: Dict[str, Document],
        by_basename: Dict[str, Document],
    ) -> Optional[Document]:
        """
        Resolve one target to a document.

        Tries an exact path, then the path with the Markdown extension,
        then a case-insensitive basename match.
        """
        if raw in by_path:
            return by_path[raw]

        with_extension = f"{raw}.{MARKDOWN_EXTENSION}"
        if with_extension in by_path:
            return by_path[with_extension]

        return by_basename.get(raw.lower())

    async def build_exclusion_map(
        self,
        files: Iterable[Document],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, Set[str]]:
        """
        Build path -> excluded paths for the given files.

        Front matter is read off the event loop, one file at a time.
        Malformed metadata degrades to no exclusions for that file, and
        unresolvable or self-referencing targets are dropped.

        Returns:
            Exclusion map (empty if cancelled)
        """
        files = list(files)
        if not files:
            return {}

        collection = self.store.all_documents()
        by_path = {doc.path: doc for doc in collection}
        by_basename: Dict[str, Document] = {}
        for doc in collection:
            # First match in path order wins for ambiguous basenames
            by_basename.setdefault(doc.basename.lower(), doc)

        exclusion_map: Dict[str, Set[str]] = {}
        for i, file in enumerate(files):
            if is_cancelled(cancel_token):
                logger.debug("exclusion_map_cancelled", processed=i, total=len(files))
                return {}

            try:
                frontmatter = await asyncio.to_thread(self.store.read_frontmatter, file.path)
            except Exception as e:
                logger.debug("exclusion_metadata_unreadable", path=file.path, error=str(e))
                continue

            targets = flatten_targets(frontmatter.get(self.exclusion_key))
            if not targets:
                continue

            excluded: Set[str] = set()
            for raw in targets:
                resolved = self.resolve_target(raw, by_path, by_basename)
                if resolved is None:
                    logger.debug("exclusion_target_unresolved", path=file.path, target=raw)
                    continue
                if resolved.path != file.path:
                    excluded.add(resolved.path)

            if excluded:
                exclusion_map[file.path] = excluded

        logger.debug("exclusion_map_built", files=len(files), excluding=len(exclusion_map))
        return exclusion_map

    @staticmethod
    def is_excluded(a: str, b: str, exclusion_map: Dict[str, Set[str]]) -> bool:
        return b in exclusion_map.get(a, ()) or a in exclusion_map.get(b, ())

    def filter_excluded_candidates(
        self,
        candidates: List[DuplicateCandidate],
        exclusion_map: Dict[str, Set[str]],
    ) -> List[DuplicateCandidate]:
        """Drop candidates where either document excludes the other."""
        if not exclusion_map:
            return list(candidates)

        kept = [
            c
            for c in candidates
            if not self.is_excluded(c.file1.path, c.file2.path, exclusion_map)
        ]

        if len(kept) != len(candidates):
            logger.info("candidates_excluded", removed=len(candidates) - len(kept))
        return kept
