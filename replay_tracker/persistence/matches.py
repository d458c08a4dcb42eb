"""Match persistence: session-level functions.

Every function takes an open ``Session`` and never commits, so callers decide
the transaction boundary (see ``persistence.store``). Upserts use the
dialect's ``INSERT ... ON CONFLICT DO UPDATE``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..db import Match, Participant
from ..models import MatchFilter, MatchRecord, MatchSummary, ParticipantSummary
from ..utils.datetime_utils import now_utc
from ..utils.db_queries import upsert_insert

__all__ = [
    "InvalidFieldError",
    "MatchField",
    "MatchStoreError",
    "get_match",
    "list_matches",
    "mark_replay_synced",
    "update_match_fields",
    "upsert_match_summary",
    "upsert_match_with_participants",
    "upsert_participant",
]

PARTICIPANT_STAT_FIELDS = tuple(
    name for name in ParticipantSummary.model_fields if name != "participant_id"
)


class MatchField(str, Enum):
    """Columns that targeted updates may write."""

    STARTED_AT = "started_at"
    DURATION = "duration"
    QUEUE_ID = "queue_id"
    REPLAY_SYNCED = "replay_synced"


class InvalidFieldError(ValueError):
    """A targeted update named a column outside ``MatchField``."""


class MatchStoreError(RuntimeError):
    """A match write failed; ``row`` is "summary" or "participant[<index>]"."""

    def __init__(self, match_id: int, row: str, message: str) -> None:
        super().__init__(f"match {match_id}: {row}: {message}")
        self.match_id = match_id
        self.row = row


def upsert_match_summary(session: Session, summary: MatchSummary) -> None:
    """Insert or overwrite a match summary row.

    ``replay_synced=None`` inserts False and leaves an existing flag untouched.
    """
    if summary.started_at is None or summary.duration is None:
        raise ValueError("started_at and duration are required for a summary upsert")

    stmt = upsert_insert(session, Match).values(
        id=summary.match_id,
        started_at=summary.started_at,
        duration=summary.duration,
        queue_id=summary.queue_id,
        replay_synced=bool(summary.replay_synced),
    )
    set_: dict[str, Any] = {
        "started_at": stmt.excluded.started_at,
        "duration": stmt.excluded.duration,
        "queue_id": stmt.excluded.queue_id,
        "updated_at": now_utc(),
    }
    if summary.replay_synced is not None:
        set_["replay_synced"] = stmt.excluded.replay_synced
    session.execute(stmt.on_conflict_do_update(index_elements=["id"], set_=set_))


def upsert_participant(session: Session, match_id: int, participant: ParticipantSummary) -> None:
    """Insert or overwrite one participant's stats."""
    values = participant.model_dump(include=set(PARTICIPANT_STAT_FIELDS))
    stmt = upsert_insert(session, Participant).values(
        match_id=match_id,
        participant_id=participant.participant_id,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["match_id", "participant_id"],
        set_={name: stmt.excluded[name] for name in PARTICIPANT_STAT_FIELDS},
    )
    session.execute(stmt)


def upsert_match_with_participants(
    session: Session,
    summary: MatchSummary,
    participants: Sequence[ParticipantSummary],
) -> None:
    """Write a summary then each participant, naming the row that fails.

    Nothing is committed here; on MatchStoreError the caller must roll back.
    """
    try:
        upsert_match_summary(session, summary)
    except (SQLAlchemyError, ValueError) as exc:
        raise MatchStoreError(summary.match_id, "summary", str(exc)) from exc

    for index, participant in enumerate(participants):
        try:
            upsert_participant(session, summary.match_id, participant)
        except SQLAlchemyError as exc:
            raise MatchStoreError(summary.match_id, f"participant[{index}]", str(exc)) from exc


def update_match_fields(
    session: Session, match_id: int, updates: Mapping[MatchField, Any]
) -> bool:
    """Update selected columns of one match. Returns True if a row changed."""
    values: dict[str, Any] = {}
    for key, value in updates.items():
        try:
            field = MatchField(key)
        except ValueError as exc:
            raise InvalidFieldError(f"{key!r} is not an updatable match field") from exc
        values[field.value] = value

    if not values:
        return False
    values["updated_at"] = now_utc()
    result = session.execute(update(Match).where(Match.id == match_id).values(**values))
    return bool(result.rowcount)


def mark_replay_synced(session: Session, match_id: int) -> None:
    """Flag a match's replay as stored, creating a placeholder row if needed."""
    stmt = upsert_insert(session, Match).values(id=match_id, replay_synced=True)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={"replay_synced": True, "updated_at": now_utc()},
    )
    session.execute(stmt)


def _to_summary(match: Match) -> MatchSummary:
    return MatchSummary(
        match_id=match.id,
        started_at=match.started_at,
        duration=match.duration,
        queue_id=match.queue_id,
        replay_synced=match.replay_synced,
    )


def _to_participant(row: Participant) -> ParticipantSummary:
    return ParticipantSummary(
        participant_id=row.participant_id,
        **{name: getattr(row, name) for name in PARTICIPANT_STAT_FIELDS},
    )


def _to_record(match: Match) -> MatchRecord:
    return MatchRecord(
        summary=_to_summary(match),
        participants=[_to_participant(row) for row in match.participants],
    )


def get_match(session: Session, match_id: int) -> MatchRecord | None:
    """Load one match with its participants, or None if it is unknown."""
    match = session.scalars(
        select(Match).options(selectinload(Match.participants)).where(Match.id == match_id)
    ).first()
    if match is None:
        return None
    return _to_record(match)


# Filter field -> predicate builder. Participant predicates match when a single
# participant of the match satisfies all of them.
_MATCH_PREDICATES: dict[str, Callable[[Any], ColumnElement[bool]]] = {
    "match_id": lambda value: Match.id == value,
    "started_at_min": lambda value: Match.started_at >= value,
    "started_at_max": lambda value: Match.started_at <= value,
    "replay_synced": lambda value: Match.replay_synced.is_(value),
}
_PARTICIPANT_PREDICATES: dict[str, Callable[[Any], ColumnElement[bool]]] = {
    "puuid": lambda value: Participant.puuid == value,
    "champion_id": lambda value: Participant.champion_id == value,
    "lane": lambda value: Participant.lane == value,
    "win": lambda value: Participant.win.is_(value),
}


def _match_predicates(filters: MatchFilter) -> list[ColumnElement[bool]]:
    predicates = [
        build(getattr(filters, name))
        for name, build in _MATCH_PREDICATES.items()
        if getattr(filters, name) is not None
    ]
    participant_predicates = [
        build(getattr(filters, name))
        for name, build in _PARTICIPANT_PREDICATES.items()
        if getattr(filters, name) is not None
    ]
    if participant_predicates:
        predicates.append(
            Match.id.in_(select(Participant.match_id).where(*participant_predicates))
        )
    return predicates


def _recent_first() -> tuple[ColumnElement[Any], ...]:
    return (Match.started_at.is_(None), Match.started_at.desc(), Match.id.desc())


def list_matches(
    session: Session,
    filters: MatchFilter | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[MatchRecord]:
    """List matches newest first, each with its participants.

    ``limit`` is clamped to 1..match_list_max_limit. Placeholder rows (no
    summary yet) sort after every fetched match.
    """
    max_limit = settings.sync_config.match_list_max_limit
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)

    id_query = (
        select(Match.id)
        .where(*_match_predicates(filters or MatchFilter()))
        .order_by(*_recent_first())
        .limit(limit)
        .offset(offset)
    )
    match_ids = list(session.scalars(id_query))
    if not match_ids:
        return []

    matches = session.scalars(
        select(Match)
        .options(selectinload(Match.participants))
        .where(Match.id.in_(match_ids))
        .order_by(*_recent_first())
    ).all()
    return [_to_record(match) for match in matches]
