"""Review result data structure."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from dupreview.models.cache import ROOT_SCOPE
from dupreview.models.duplicate import DuplicateGroup


@dataclass
class ReviewResult:
    """Outcome of one review run.

    ``groups`` are already filtered for dismissals. An aborted run
    (superseded or cancelled) carries no groups and was not cached.
    """

    scope: str = ROOT_SCOPE
    groups: List[DuplicateGroup] = field(default_factory=list)
    files_scanned: int = 0
    from_cache: bool = False
    aborted: bool = False
    mode: str = "folder"

    @property
    def display_scope(self) -> str:
        """Human-readable scope name."""
        if self.mode == "pattern":
            return f'pattern "{self.scope}"'
        if self.scope == ROOT_SCOPE:
            return "Entire vault"
        return self.scope

    @property
    def duplicate_file_count(self) -> int:
        return sum(g.file_count for g in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "scope": self.scope,
            "mode": self.mode,
            "files_scanned": self.files_scanned,
            "from_cache": self.from_cache,
            "aborted": self.aborted,
            "groups": [
                {
                    "normalized_title": g.normalized_title,
                    "original_titles": sorted(g.original_titles),
                    "files": g.paths,
                }
                for g in self.groups
            ],
        }
