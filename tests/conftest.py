"""Shared fixtures: temporary vaults and in-memory documents."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from dupreview.models.document import Document
from dupreview.observability.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """Point structlog back at the current stderr after each test

    CLI commands and logging tests reconfigure output onto streams that
    are closed once the test ends.
    """
    yield
    configure_logging()


@pytest.fixture
def temp_vault():
    """Create a temporary vault directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def write_note(temp_vault):
    """Write a note into the temp vault and return its vault-relative path"""

    def _write(path: str, content: str = "", frontmatter: Optional[str] = None) -> str:
        full_path = temp_vault / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        if frontmatter is not None:
            content = f"---\n{frontmatter}\n---\n{content}"
        full_path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_documents():
    """Build in-memory documents; reads of ``failing`` paths raise OSError"""

    def _make(contents: Dict[str, str], failing: tuple = ()) -> Dict[str, Document]:
        async def reader(path: str) -> str:
            if path in failing:
                raise OSError(f"cannot read {path}")
            return contents[path]

        return {
            path: Document(path=path, modified_at=1000 + i, reader=reader)
            for i, path in enumerate(contents)
        }

    return _make
