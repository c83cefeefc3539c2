"""Change notifications from the host document store."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from dupreview.models.document import MARKDOWN_EXTENSION


class ChangeType(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


class ChangeEvent(BaseModel):
    """A document was created, modified, deleted or renamed"""

    change_type: ChangeType
    path: str = Field(..., min_length=1)
    old_path: Optional[str] = None

    @model_validator(mode="after")
    def validate_rename(self) -> "ChangeEvent":
        if self.change_type == ChangeType.RENAME and not self.old_path:
            raise ValueError("rename events require old_path")
        return self

    @property
    def affected_paths(self) -> List[str]:
        """Paths whose cached results this event makes stale"""
        paths = [self.path]
        if self.change_type == ChangeType.RENAME and self.old_path:
            paths.append(self.old_path)
        return paths

    @property
    def markdown_paths(self) -> List[str]:
        """Affected paths that are Markdown documents"""
        suffix = f".{MARKDOWN_EXTENSION}"
        return [p for p in self.affected_paths if p.lower().endswith(suffix)]
