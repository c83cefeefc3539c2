"""
Durable key-value store for reviewer state.

All persisted state lives in a single JSON-compatible document stored
under one key, with a section per concern:

    {"duplicate_cache": {scope: CacheEntry}, "dismissed_groups": [[path, ...]]}

Writers update their own section with read-merge-write so sections owned
by other services survive.
"""

from pathlib import Path
from typing import Any, Dict

import diskcache
import structlog

from dupreview.utils.exceptions import StateStoreError

logger = structlog.get_logger()

DATA_KEY = "data"
CACHE_SECTION = "duplicate_cache"
DISMISSED_SECTION = "dismissed_groups"


class StateStore:
    """
    diskcache-backed persistence for the whole state document.

    When disabled, reads return an empty document and writes are dropped,
    so the reviewer runs fully in memory.
    """

    def __init__(self, state_dir: Path, enabled: bool = True):
        """
        Initialize state store.

        Args:
            state_dir: Directory holding the diskcache database
            enabled: Persist state between runs
        """
        self.state_dir = Path(state_dir)
        self.enabled = enabled
        self._cache: Any = None

        if not enabled:
            logger.info("state_store_disabled")
            return

        self.state_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(self.state_dir))

        logger.debug("state_store_initialized", state_dir=str(self.state_dir))

    def load_data(self) -> Dict[str, Any]:
        """
        Load the state document.

        Returns:
            The persisted document, or an empty dict if absent or unreadable
        """
        if not self.enabled:
            return {}

        try:
            data = self._cache.get(DATA_KEY)
        except Exception as e:
            logger.warning("state_load_failed", error=str(e))
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning("state_corrupt", found=type(data).__name__)
            return {}
        return data

    def save_data(self, data: Dict[str, Any]) -> None:
        """
        Replace the state document.

        Raises:
            StateStoreError: If the write fails
        """
        if not self.enabled:
            return

        try:
            self._cache.set(DATA_KEY, data)
        except Exception as e:
            logger.error("state_save_failed", error=str(e))
            raise StateStoreError(f"Failed to save state: {e}") from e

    def load_section(self, section: str, default: Any = None) -> Any:
        """Read one section of the state document."""
        return self.load_data().get(section, default)

    def update(self, section: str, value: Any) -> None:
        """
        Replace one section, keeping the others as currently persisted.

        Args:
            section: Top-level key of the state document
            value: JSON-compatible section value
        """
        data = self.load_data()
        data[section] = value
        self.save_data(data)
        logger.debug("state_section_saved", section=section)

    def clear(self) -> None:
        """Delete the whole state document."""
        if not self.enabled:
            return
        self._cache.clear()
        logger.info("state_cleared")

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
