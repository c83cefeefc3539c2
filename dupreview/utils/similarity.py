"""Title normalization and Jaccard similarity utilities.

Titles and content prefixes are compared as word sets:
- Titles are normalized (index prefixes, punctuation and host copy
  counters removed) and split into words
- Content is stripped of YAML front matter and truncated before
  tokenizing, as a cheap proxy for the whole document
"""

import re
from typing import AbstractSet, FrozenSet

# Index prefixes like "EAD0001" or "[AB12]" (matched before lowercasing)
_CODE_PREFIX = re.compile(r"^\[?[A-Z]{2,4}\d+\]?\s*")
# Decimal prefixes like "250.25"
_DECIMAL_PREFIX = re.compile(r"^\d+\.\d+\s*")
_MD_EXTENSION = re.compile(r"\.md$", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[^\w\s]")
# Copy counters appended by the host ("Notes 1", "Untitled 2 3")
_COPY_COUNTER = re.compile(r"(?<=\S)(?:\s+\d{1,3})+$")
# Default names the host numbers when taken; other titles keep their numbers
COPY_COUNTER_BASES = frozenset({"note", "notes", "new note", "untitled"})
_WORD = re.compile(r"\w+")

FRONTMATTER_DELIMITER = "---"


def normalize_title(title: str) -> str:
    """Normalize a document title for comparison.

    Removes the Markdown extension, common index prefixes, punctuation
    and host copy counters ("Untitled 2"), lowercases and collapses whitespace.
    Idempotent: normalizing an already normalized title is a no-op.

    Args:
        title: Raw title or basename.

    Returns:
        Normalized title string (may be empty).
    """
    if not title:
        return ""

    normalized = _MD_EXTENSION.sub("", title)
    normalized = _CODE_PREFIX.sub("", normalized)
    normalized = _DECIMAL_PREFIX.sub("", normalized)

    normalized = normalized.lower()
    normalized = _PUNCTUATION.sub("", normalized)

    normalized = " ".join(normalized.split())
    base = _COPY_COUNTER.sub("", normalized)
    if base in COPY_COUNTER_BASES:
        normalized = base

    return normalized


def title_word_set(title: str) -> FrozenSet[str]:
    """Word-token set of a normalized title.

    Duplicate words collapse into one token and carry no extra weight.
    """
    return frozenset(normalize_title(title).split())


def jaccard_similarity(words1: AbstractSet[str], words2: AbstractSet[str]) -> float:
    """Jaccard similarity |A ∩ B| / |A ∪ B| of two token sets.

    Returns 0.0 if either set is empty, so empty titles never match
    anything, including each other.
    """
    if not words1 or not words2:
        return 0.0

    intersection = len(words1 & words2)
    union = len(words1) + len(words2) - intersection
    return intersection / union


def title_similarity(title1: str, title2: str) -> float:
    """Calculate similarity between two titles.

    Args:
        title1: First title (will be normalized).
        title2: Second title (will be normalized).

    Returns:
        Similarity score between 0.0 and 1.0.
    """
    return jaccard_similarity(title_word_set(title1), title_word_set(title2))


def extract_body(content: str) -> str:
    """Return the document body after a leading YAML front matter block.

    The block only counts as front matter when the content starts with
    the delimiter and a second delimiter exists; otherwise the whole
    content is the body.
    """
    if content.startswith(FRONTMATTER_DELIMITER):
        parts = content.split(FRONTMATTER_DELIMITER)
        if len(parts) >= 3:
            return FRONTMATTER_DELIMITER.join(parts[2:]).strip()
    return content.strip()


def content_word_set(content: str, max_chars: int) -> FrozenSet[str]:
    """Lowercased word tokens from the first ``max_chars`` body characters."""
    body = extract_body(content)[:max_chars]
    return frozenset(_WORD.findall(body.lower()))


def content_similarity(content1: str, content2: str, max_chars: int = 1000) -> float:
    """Calculate similarity between two document contents.

    Uses Jaccard similarity on word sets from the first ``max_chars``
    characters of each body.

    Args:
        content1: Full content of the first document.
        content2: Full content of the second document.
        max_chars: Number of body characters to analyze.

    Returns:
        Similarity score between 0.0 and 1.0.
    """
    return jaccard_similarity(
        content_word_set(content1, max_chars),
        content_word_set(content2, max_chars),
    )
