"""Database models and session management.

Import models from their respective modules:
    from replay_tracker.db.matches import Match, Participant
    from replay_tracker.db.accounts import RiotAccount, TrackedAccount

Session management:
    from replay_tracker.db import get_session
"""

from __future__ import annotations

from .accounts import RiotAccount, TrackedAccount
from .base import Base
from .matches import Match, Participant
from .session import create_db_engine, get_session, get_session_factory

__all__ = [
    "Base",
    "Match",
    "Participant",
    "RiotAccount",
    "TrackedAccount",
    "create_db_engine",
    "get_session",
    "get_session_factory",
]
