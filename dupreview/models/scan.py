"""Scan progress and cooperative cancellation models."""

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field


class ScanStage(str, Enum):
    """Stages a scan moves through, in order."""

    COLLECTING = "collecting"
    COMPARING = "comparing"
    FILTERING = "filtering"
    REFINING = "refining"
    GROUPING = "grouping"
    DONE = "done"


class ScanProgress(BaseModel):
    """Progress event emitted by the scanner"""

    stage: ScanStage
    current: int = Field(0, ge=0)
    total: int = Field(0, ge=0)

    @property
    def percent(self) -> int:
        """Completion of the current stage as a whole percentage"""
        if self.total == 0:
            return 0
        return round(self.current / self.total * 100)


ProgressCallback = Callable[[ScanProgress], None]


class CancellationToken:
    """Cooperative cancellation flag.

    Scans check the flag at the start of each unit of work and exit
    quietly once it is set. Cancelling never raises in the scan itself.
    """

    def __init__(self, reason: Optional[str] = None):
        self._cancelled = False
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation. Idempotent; the first reason is kept."""
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason or self.reason

    def __repr__(self) -> str:
        return f"<CancellationToken cancelled={self._cancelled}>"


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    """True if ``token`` is set and has been cancelled."""
    return token is not None and token.cancelled
