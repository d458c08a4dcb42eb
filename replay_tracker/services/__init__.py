"""Service layer: account registration and match sync."""

from .accounts import register_account
from .match_sync import (
    MatchIdParseError,
    MatchSyncError,
    MatchSyncService,
    MatchSyncSummary,
    extract_match_id,
)

__all__ = [
    "MatchIdParseError",
    "MatchSyncError",
    "MatchSyncService",
    "MatchSyncSummary",
    "extract_match_id",
    "register_account",
]
