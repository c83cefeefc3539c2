"""Configuration models for the duplicate reviewer.

Loaded from YAML by ConfigManager and validated here.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_IGNORED_FOLDERS = [".obsidian", ".git", ".trash"]
DEFAULT_COMMON_PATTERNS = ["Notes", "Untitled", "Note", "New Note"]


class ReviewerSettings(BaseModel):
    """Similarity and scope settings consumed by the scan pipeline"""

    model_config = ConfigDict(protected_namespaces=())

    title_similarity_threshold: float = Field(0.8, ge=0.0, le=1.0)
    enable_content_similarity: bool = False
    content_similarity_threshold: float = Field(0.6, ge=0.0, le=1.0)
    content_chars_to_analyze: int = Field(1000, gt=0)

    ignored_folders: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_FOLDERS),
        description="Path substrings to skip when collecting documents",
    )
    common_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COMMON_PATTERNS),
        description="Name patterns offered for pattern-based review",
    )
    max_comparison_panes: int = Field(3, ge=2, le=4)

    # Front matter key listing documents that must never be grouped with this one
    exclusion_key: str = Field("duplicate_exclude", min_length=1)

    @field_validator("ignored_folders", "common_patterns")
    @classmethod
    def strip_blank_entries(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]


class StateConfig(BaseModel):
    """Where scan results and dismissals are persisted"""

    enabled: bool = True
    state_dir: str = ".dupreview"


class LoggingConfig(BaseModel):
    """Logging output settings"""

    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class AppConfig(BaseModel):
    """Top-level configuration file"""

    vault_root: str = Field(..., min_length=1)
    settings: ReviewerSettings = Field(default_factory=ReviewerSettings)
    state: StateConfig = Field(default_factory=StateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
