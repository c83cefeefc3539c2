"""
Dismissed duplicate groups.

A dismissal records the exact set of paths a reviewer marked as "not
duplicates". It hides a group only while the group contains exactly
those paths; once a file joins or leaves, the group shows again.
"""

from typing import Iterable, List, Set, Tuple

import structlog

from dupreview.models.duplicate import DuplicateGroup
from dupreview.services.state_store import DISMISSED_SECTION, StateStore

logger = structlog.get_logger()


def dismissal_key(paths: Iterable[str]) -> Tuple[str, ...]:
    return tuple(sorted(paths))


class DismissalService:
    """Persisted record of dismissed groups."""

    def __init__(self, state_store: StateStore):
        self.state_store = state_store
        self._dismissed: Set[Tuple[str, ...]] = set()

    def load(self) -> None:
        """Load dismissals; malformed records are ignored."""
        raw = self.state_store.load_section(DISMISSED_SECTION, [])
        self._dismissed = set()

        if not isinstance(raw, list):
            logger.warning("dismissals_corrupt", found=type(raw).__name__)
            return

        for item in raw:
            if isinstance(item, list) and all(isinstance(p, str) for p in item):
                self._dismissed.add(dismissal_key(item))
            else:
                logger.warning("dismissal_invalid", item=repr(item)[:80])

        logger.debug("dismissals_loaded", count=len(self._dismissed))

    def save(self) -> None:
        self.state_store.update(DISMISSED_SECTION, self.dismissed_groups())

    def dismiss(self, paths: Iterable[str]) -> bool:
        """
        Dismiss a group of paths and persist.

        Returns:
            False if the paths were already dismissed or fewer than two
        """
        key = dismissal_key(set(paths))
        if len(key) < 2 or key in self._dismissed:
            return False

        self._dismissed.add(key)
        self.save()
        logger.info("group_dismissed", files=len(key))
        return True

    def is_dismissed(self, paths: Iterable[str]) -> bool:
        return dismissal_key(set(paths)) in self._dismissed

    def filter_dismissed(self, groups: List[DuplicateGroup]) -> List[DuplicateGroup]:
        """Groups whose exact path set has not been dismissed."""
        return [g for g in groups if not self.is_dismissed(g.paths)]

    def dismissed_groups(self) -> List[List[str]]:
        return [list(key) for key in sorted(self._dismissed)]

    def clear(self) -> None:
        self._dismissed.clear()
        self.save()
        logger.info("dismissals_cleared")

    def __len__(self) -> int:
        return len(self._dismissed)
