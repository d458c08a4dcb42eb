"""Transactional facade over the match and account persistence functions.

Each method runs in its own session and commits before returning, so a
failure in one match never undoes another match's writes.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from structlog.typing import FilteringBoundLogger

from ..db import get_session
from ..logging import get_logger
from ..models import (
    MatchFilter,
    MatchRecord,
    MatchSummary,
    ParticipantSummary,
    RiotAccountIdentity,
)
from . import accounts as account_queries
from . import matches as match_queries
from .matches import MatchField, MatchStoreError


class MatchRecordStore:
    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._logger = logger or get_logger(__name__)

    def _session(self):
        return get_session(self._session_factory)

    # -------------------------------------------------------------------------
    # Matches
    # -------------------------------------------------------------------------
    def get_match(self, match_id: int) -> MatchRecord | None:
        with self._session() as session:
            return match_queries.get_match(session, match_id)

    def list_matches(
        self, filters: MatchFilter | None = None, limit: int = 20, offset: int = 0
    ) -> list[MatchRecord]:
        with self._session() as session:
            return match_queries.list_matches(session, filters, limit=limit, offset=offset)

    def upsert_match_with_participants(
        self, summary: MatchSummary, participants: Sequence[ParticipantSummary]
    ) -> None:
        """Write a match and its participants atomically.

        Raises MatchStoreError naming the failing row; nothing is kept on failure.
        """
        try:
            with self._session() as session:
                match_queries.upsert_match_with_participants(session, summary, participants)
        except MatchStoreError as exc:
            self._logger.error(
                "match_upsert_failed", match_id=summary.match_id, row=exc.row, error=str(exc)
            )
            raise
        except SQLAlchemyError as exc:
            self._logger.error("match_upsert_failed", match_id=summary.match_id, row="commit", error=str(exc))
            raise MatchStoreError(summary.match_id, "commit", str(exc)) from exc
        self._logger.debug(
            "match_upserted", match_id=summary.match_id, participants=len(participants)
        )

    def update_match_fields(self, match_id: int, updates: Mapping[MatchField, Any]) -> bool:
        try:
            with self._session() as session:
                return match_queries.update_match_fields(session, match_id, updates)
        except SQLAlchemyError as exc:
            raise MatchStoreError(match_id, "summary", str(exc)) from exc

    def mark_replay_synced(self, match_id: int) -> None:
        try:
            with self._session() as session:
                match_queries.mark_replay_synced(session, match_id)
        except SQLAlchemyError as exc:
            raise MatchStoreError(match_id, "summary", str(exc)) from exc

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------
    def get_account(self, puuid: str) -> RiotAccountIdentity | None:
        with self._session() as session:
            return account_queries.get_account(session, puuid)

    def list_accounts_for_sync(self) -> list[RiotAccountIdentity]:
        with self._session() as session:
            return account_queries.list_accounts_for_sync(session)

    def update_account_synced_at(self, puuid: str, synced_at: int) -> bool:
        with self._session() as session:
            return account_queries.update_account_synced_at(session, puuid, synced_at)
