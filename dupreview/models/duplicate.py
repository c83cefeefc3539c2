"""Duplicate candidates and groups produced by a scan."""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Set

from dupreview.models.document import Document


@dataclass(frozen=True)
class DuplicateCandidate:
    """A pair of documents whose titles are similar enough to review.

    ``file1`` is always the document seen earlier in scan order. Content
    fields stay ``None`` until content refinement runs, and
    ``content_similarity`` stays ``None`` when either read failed.
    """

    file1: Document
    file2: Document
    title_similarity: float
    content_similarity: Optional[float] = None
    likely_duplicate: Optional[bool] = None

    @property
    def pair_key(self) -> FrozenSet[str]:
        """Order-independent identity of the pair."""
        return frozenset((self.file1.path, self.file2.path))

    @property
    def combined_score(self) -> float:
        """Title plus content similarity (missing content counts as 0)."""
        return self.title_similarity + (self.content_similarity or 0.0)

    def __repr__(self):
        return (
            f"<DuplicateCandidate {self.file1.path} ~ {self.file2.path} "
            f"title={self.title_similarity:.2f}>"
        )


@dataclass
class DuplicateGroup:
    """
    A cluster of documents sharing a normalized title.
    Groups with fewer than two files are resolved and hidden from review.
    """

    normalized_title: str
    original_titles: Set[str] = field(default_factory=set)
    files: List[Document] = field(default_factory=list)
    candidates: List[DuplicateCandidate] = field(default_factory=list)
    _paths: Set[str] = field(
        default_factory=set, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        self._paths.update(f.path for f in self.files)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def file_count(self) -> int:
        """How many files are in this group."""
        return len(self.files)

    @property
    def is_resolved(self) -> bool:
        """True once fewer than two files remain."""
        return self.file_count < 2

    def add_file(self, file: Document) -> None:
        """Add a file unless a file with the same path is already present."""
        if file.path not in self._paths:
            self._paths.add(file.path)
            self.files.append(file)

    def add_candidate(self, candidate: DuplicateCandidate) -> None:
        self.original_titles.add(candidate.file1.basename)
        self.original_titles.add(candidate.file2.basename)
        self.candidates.append(candidate)
        self.add_file(candidate.file1)
        self.add_file(candidate.file2)

    def __repr__(self):
        return f"<DuplicateGroup title={self.normalized_title!r}, count={len(self.files)}>"
