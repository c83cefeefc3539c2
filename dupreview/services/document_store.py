"""
Filesystem-backed document store.

Serves a vault (a directory tree of Markdown notes) to the scan pipeline:
- Lists documents under a scope, skipping ignored and hidden paths
- Reads document content and YAML front matter
- Looks documents up by vault-relative path

The store is read-only; it never writes to the vault.
"""

import asyncio
import os
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

import structlog
import yaml

from dupreview.models.cache import ROOT_SCOPE
from dupreview.models.document import MARKDOWN_EXTENSION, Document
from dupreview.utils.exceptions import (
    DocumentReadError,
    DocumentStoreError,
    ScopeNotFoundError,
)
from dupreview.utils.similarity import FRONTMATTER_DELIMITER

logger = structlog.get_logger()


def should_skip_path(path: str, ignored_folders: Iterable[str]) -> bool:
    """
    Check if a vault path should be skipped.

    A path is skipped when it contains any ignored folder string, or when
    any of its segments is hidden (starts with a dot).

    Args:
        path: Vault-relative POSIX path
        ignored_folders: Path substrings to ignore

    Returns:
        True if the path must not be scanned
    """
    for ignore in ignored_folders:
        if ignore and ignore in path:
            return True
    return any(part.startswith(".") for part in path.split("/"))


def normalize_scope(scope: Optional[str]) -> str:
    """Canonical scope key: ROOT_SCOPE or a vault-relative folder path."""
    if scope is None:
        return ROOT_SCOPE
    cleaned = scope.strip().replace("\\", "/").strip("/")
    if cleaned in ("", "."):
        return ROOT_SCOPE
    return cleaned


def parse_frontmatter(content: str) -> Dict[str, Any]:
    """
    Parse the YAML front matter block at the start of a document.

    Returns an empty dict when there is no block, the YAML is invalid, or
    the block is not a mapping.
    """
    if not content.startswith(FRONTMATTER_DELIMITER):
        return {}

    lines = content.splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}

    for end, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            break
    else:
        return {}

    try:
        data = yaml.safe_load("\n".join(lines[1:end]))
    except yaml.YAMLError as e:
        logger.debug("frontmatter_parse_failed", error=str(e))
        return {}

    return data if isinstance(data, dict) else {}


class FilesystemDocumentStore:
    """
    Read-only view of a vault on the local filesystem.

    Documents are identified by vault-relative POSIX paths such as
    ``Projects/Plan.md``.
    """

    def __init__(self, root: Path, encoding: str = "utf-8"):
        """
        Initialize the document store.

        Args:
            root: Vault root directory
            encoding: Text encoding used to read documents

        Raises:
            DocumentStoreError: If root is not an existing directory
        """
        self.root = Path(root).expanduser().resolve()
        self.encoding = encoding

        if not self.root.is_dir():
            raise DocumentStoreError(f"Vault root is not a directory: {self.root}")

        logger.debug("document_store_initialized", root=str(self.root))

    # ==================== Listing ====================

    def list_documents(
        self,
        scope: Optional[str] = ROOT_SCOPE,
        ignored_folders: Iterable[str] = (),
    ) -> List[Document]:
        """
        List Markdown documents under a scope.

        Args:
            scope: Folder path relative to the vault root, or ROOT_SCOPE
            ignored_folders: Path substrings to skip

        Returns:
            Documents sorted by path (the fixed scan order)

        Raises:
            ScopeNotFoundError: If the scope folder does not exist
        """
        scope = normalize_scope(scope)
        ignored = [i for i in ignored_folders if i]
        base = self._scope_dir(scope)

        documents: List[Document] = []
        try:
            for dirpath, dirnames, filenames in os.walk(base):
                # Hidden folders never contain scannable documents
                dirnames[:] = [d for d in dirnames if not d.startswith(".")]
                for filename in filenames:
                    if not filename.lower().endswith(f".{MARKDOWN_EXTENSION}"):
                        continue
                    rel_path = self._relative(Path(dirpath) / filename)
                    if should_skip_path(rel_path, ignored):
                        continue
                    document = self._make_document(rel_path)
                    if document is not None:
                        documents.append(document)
        except OSError as e:
            raise DocumentStoreError(f"Failed to list {scope}: {e}") from e

        documents.sort(key=lambda d: d.path)
        logger.debug("documents_listed", scope=scope, count=len(documents))
        return documents

    def all_documents(self) -> List[Document]:
        """Every visible Markdown document in the vault."""
        return self.list_documents(ROOT_SCOPE)

    def list_folders(self, ignored_folders: Iterable[str] = ()) -> List[str]:
        """
        List scannable folder scopes, root first.

        Ignored and hidden folders (and everything below them) are skipped.
        """
        ignored = [i for i in ignored_folders if i]
        folders = [ROOT_SCOPE]

        for dirpath, dirnames, _ in os.walk(self.root):
            kept = []
            for name in sorted(dirnames):
                rel_path = self._relative(Path(dirpath) / name)
                if should_skip_path(rel_path, ignored):
                    continue
                kept.append(name)
                folders.append(rel_path)
            dirnames[:] = kept

        return folders

    def folder_exists(self, scope: Optional[str]) -> bool:
        scope = normalize_scope(scope)
        if scope == ROOT_SCOPE:
            return True
        return (self.root / scope).is_dir()

    # ==================== Lookup ====================

    def get_document(self, path: str) -> Optional[Document]:
        """
        Look up a document by vault-relative path.

        Returns:
            Document, or None if no such Markdown file exists
        """
        rel_path = path.replace("\\", "/").strip("/")
        if not rel_path or ".." in PurePosixPath(rel_path).parts:
            return None
        if not rel_path.lower().endswith(f".{MARKDOWN_EXTENSION}"):
            return None
        return self._make_document(rel_path)

    def absolute_path(self, path: str) -> Path:
        """Absolute filesystem path of a vault-relative path."""
        return self.root / path

    # ==================== Content ====================

    async def read_content(self, path: str) -> str:
        """
        Read a document's full content without blocking the event loop.

        Raises:
            DocumentReadError: If the document cannot be read
        """
        return await asyncio.to_thread(self._read_text, path)

    def read_frontmatter(self, path: str) -> Dict[str, Any]:
        """
        Read a document's YAML front matter.

        Returns:
            Front matter mapping; empty if absent, invalid or unreadable
        """
        try:
            content = self._read_text(path)
        except DocumentReadError as e:
            logger.debug("frontmatter_read_failed", path=path, error=e.reason)
            return {}
        return parse_frontmatter(content)

    # ==================== Internal ====================

    def _scope_dir(self, scope: str) -> Path:
        if scope == ROOT_SCOPE:
            return self.root
        base = (self.root / scope).resolve()
        if not base.is_dir() or not base.is_relative_to(self.root):
            raise ScopeNotFoundError(scope)
        return base

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    def _make_document(self, rel_path: str) -> Optional[Document]:
        try:
            stat_result = (self.root / rel_path).stat()
        except OSError:
            return None
        if not (self.root / rel_path).is_file():
            return None
        return Document(
            path=rel_path,
            modified_at=stat_result.st_mtime_ns // 1_000_000,
            reader=self.read_content,
        )

    def _read_text(self, path: str) -> str:
        try:
            return (self.root / path).read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(path, str(e)) from e
