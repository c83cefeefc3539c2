"""Orchestration module for review coordination."""

from dupreview.orchestration.orchestrator import ReviewOrchestrator
from dupreview.orchestration.result import ReviewResult

__all__ = ["ReviewOrchestrator", "ReviewResult"]
