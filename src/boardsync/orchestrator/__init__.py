"""Sync pipeline orchestration."""

from boardsync.orchestrator.manager import CycleOutcome, SyncContext, SyncManager

__all__ = [
    "SyncManager",
    "SyncContext",
    "CycleOutcome",
]
