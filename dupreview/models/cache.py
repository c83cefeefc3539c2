"""
Data models for the scan result cache.

Defines the persisted cache entry, its staleness fingerprint and
cache statistics.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dupreview.models.config import ReviewerSettings

# Cache key used for scans of the entire vault
ROOT_SCOPE = "/"


def scope_covers(scope: str, path: str) -> bool:
    """True if ``path`` lies inside ``scope``"""
    return scope == ROOT_SCOPE or path.startswith(scope + "/")


class SimilarityFingerprint(BaseModel):
    """The similarity settings a cached result was built with"""

    model_config = ConfigDict(protected_namespaces=())

    title_threshold: float
    enable_content: bool
    content_threshold: float
    content_chars: int

    @classmethod
    def from_settings(cls, settings: ReviewerSettings) -> "SimilarityFingerprint":
        return cls(
            title_threshold=settings.title_similarity_threshold,
            enable_content=settings.enable_content_similarity,
            content_threshold=settings.content_similarity_threshold,
            content_chars=settings.content_chars_to_analyze,
        )

    def matches(self, settings: ReviewerSettings) -> bool:
        """True if ``settings`` would produce the same scan result"""
        return self == SimilarityFingerprint.from_settings(settings)


class SerializedDuplicateGroup(BaseModel):
    """A duplicate group reduced to paths for persistence"""

    normalized_title: str
    original_titles: List[str] = Field(default_factory=list)
    file_paths: List[str] = Field(default_factory=list)


class CacheEntry(BaseModel):
    """Persisted scan result for one scope"""

    model_config = ConfigDict(protected_namespaces=())

    scope: str
    scan_timestamp: int = Field(..., ge=0, description="Milliseconds since epoch")
    file_count: int = Field(..., ge=0)
    max_mtime: int = Field(..., ge=0)
    groups: List[SerializedDuplicateGroup] = Field(default_factory=list)
    settings: SimilarityFingerprint

    @property
    def is_root(self) -> bool:
        return self.scope == ROOT_SCOPE

    def covers(self, path: str) -> bool:
        """True if ``path`` lies inside this entry's scope"""
        return scope_covers(self.scope, path)


class CacheStats(BaseModel):
    """Cache statistics"""

    model_config = ConfigDict(protected_namespaces=())

    entry_count: int = 0
    dirty_paths: int = 0
    last_built: Optional[datetime] = None
    most_recent_scope: Optional[str] = None
    scopes: List[str] = Field(default_factory=list)
