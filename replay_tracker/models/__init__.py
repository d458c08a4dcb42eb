"""Common typed models shared across the service."""

from .schemas import (
    MatchDetail,
    MatchFilter,
    MatchInfo,
    MatchRecord,
    MatchSummary,
    ParticipantSummary,
    ReplayList,
    RiotAccountIdentity,
)

__all__ = [
    "MatchDetail",
    "MatchFilter",
    "MatchInfo",
    "MatchRecord",
    "MatchSummary",
    "ParticipantSummary",
    "ReplayList",
    "RiotAccountIdentity",
]
