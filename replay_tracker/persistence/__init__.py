"""Persistence layer for matches and Riot accounts."""

from .matches import InvalidFieldError, MatchField, MatchStoreError
from .store import MatchRecordStore

__all__ = [
    "InvalidFieldError",
    "MatchField",
    "MatchRecordStore",
    "MatchStoreError",
]
