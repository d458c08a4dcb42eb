"""Celery task registry.

Re-exports every task so ``include=["replay_tracker.jobs.tasks"]`` registers
them. New code should import from the specific task modules.
"""

from __future__ import annotations

from .sync_tasks import (
    sync_account_matches,
    sync_tracked_accounts,
)

__all__ = [
    "sync_account_matches",
    "sync_tracked_accounts",
]
