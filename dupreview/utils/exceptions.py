"""Custom exceptions for the duplicate review pipeline.

This module defines the exception hierarchy used across the scanner,
the document store and the persisted state:
- Base exception for all dupreview errors
- Document store errors (scope disappeared, unreadable document)
- State store errors (durable key-value store unavailable)

Per-document problems (an unreadable note during content refinement,
malformed exclusion metadata) are handled where they occur and never
raise out of a scan. Only scope-level failures reach the caller.
"""


class DupReviewError(Exception):
    """Base exception for all dupreview errors

    Use this to catch any error raised out of a review run:
    ```python
    try:
        result = await orchestrator.start_review("Projects")
    except DupReviewError as e:
        logger.error("review_failed", error=str(e))
    ```
    """

    pass


class DocumentStoreError(DupReviewError):
    """The host document store could not serve a request

    Raised when:
    - The vault root does not exist or is not a directory
    - A folder listing fails at the operating-system level
    """

    pass


class ScopeNotFoundError(DocumentStoreError):
    """The requested scan scope does not exist

    Raised when:
    - A folder path passed as scope is missing from the vault
    - The folder was deleted between selection and scan
    """

    def __init__(self, scope: str) -> None:
        super().__init__(f"Scope not found: {scope}")
        self.scope = scope


class DocumentReadError(DocumentStoreError):
    """A single document could not be read

    Raised when:
    - The document was deleted or renamed mid-scan
    - The file is not valid UTF-8 text
    - Permission denied

    The scanner recovers from this per candidate; it is only surfaced
    to callers that read documents directly.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = path
        self.reason = reason


class StateStoreError(DupReviewError):
    """The durable key-value store rejected a write

    Reads never raise: a missing or corrupt persisted state is treated
    as empty.
    """

    pass
