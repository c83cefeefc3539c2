"""Document reference handed out by the host document store.

A Document is a read-only handle: the core reads its path, names and
modification time, and asks it for content. It never mutates it.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

MARKDOWN_EXTENSION = "md"

ContentReader = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Document:
    """Opaque reference to a document in the host store.

    Attributes:
        path: Vault-relative POSIX path, unique within the store
        modified_at: Modification time in milliseconds since the epoch
        reader: Coroutine function returning the content of ``path``
    """

    path: str
    modified_at: int = 0
    reader: Optional[ContentReader] = field(
        default=None, compare=False, repr=False, hash=False
    )

    @property
    def name(self) -> str:
        """File name including extension."""
        return posixpath.basename(self.path)

    @property
    def basename(self) -> str:
        """File name without extension (the display title)."""
        stem, _ = posixpath.splitext(self.name)
        return stem

    @property
    def extension(self) -> str:
        """Lowercase extension without the leading dot."""
        _, ext = posixpath.splitext(self.name)
        return ext[1:].lower()

    @property
    def folder(self) -> str:
        """Vault-relative parent folder ("" for the vault root)."""
        return posixpath.dirname(self.path)

    async def read_content(self) -> str:
        """Read the full document content through the host store."""
        if self.reader is None:
            raise RuntimeError(f"No content reader attached to {self.path}")
        return await self.reader(self.path)

    def __repr__(self) -> str:
        return f"<Document path={self.path}, modified_at={self.modified_at}>"
