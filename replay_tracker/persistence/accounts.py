"""Riot account and tracking persistence."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..db import RiotAccount, TrackedAccount
from ..models import RiotAccountIdentity
from ..utils.db_queries import upsert_insert

__all__ = [
    "find_account",
    "get_account",
    "list_accounts_for_sync",
    "track_account",
    "untrack_account",
    "update_account_synced_at",
    "upsert_account",
]


def _to_identity(account: RiotAccount) -> RiotAccountIdentity:
    return RiotAccountIdentity(
        puuid=account.puuid,
        game_name=account.game_name,
        tag_line=account.tag_line,
        region=account.region,
        synced_at=account.synced_at,
    )


def upsert_account(session: Session, account: RiotAccountIdentity) -> None:
    """Insert an account or refresh its Riot id. The sync cursor is kept."""
    if not account.region:
        raise ValueError("region is required to store an account")
    stmt = upsert_insert(session, RiotAccount).values(
        puuid=account.puuid,
        game_name=account.game_name,
        tag_line=account.tag_line,
        region=account.region,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["puuid"],
        set_={
            "game_name": stmt.excluded.game_name,
            "tag_line": stmt.excluded.tag_line,
            "region": stmt.excluded.region,
        },
    )
    session.execute(stmt)


def get_account(session: Session, puuid: str) -> RiotAccountIdentity | None:
    account = session.get(RiotAccount, puuid)
    return _to_identity(account) if account else None


def find_account(
    session: Session, game_name: str, tag_line: str, region: str
) -> RiotAccountIdentity | None:
    """Look up an account by Riot id, ignoring case of the name and tag."""
    account = session.scalars(
        select(RiotAccount).where(
            RiotAccount.game_name.ilike(game_name),
            RiotAccount.tag_line.ilike(tag_line),
            RiotAccount.region == region,
        )
    ).first()
    return _to_identity(account) if account else None


def track_account(session: Session, user_id: str, puuid: str) -> bool:
    """Start tracking an account for a user. Returns False if already tracked."""
    stmt = (
        upsert_insert(session, TrackedAccount)
        .values(user_id=user_id, account_puuid=puuid)
        .on_conflict_do_nothing(index_elements=["user_id", "account_puuid"])
    )
    result = session.execute(stmt)
    return bool(result.rowcount)


def untrack_account(session: Session, user_id: str, puuid: str) -> bool:
    result = session.execute(
        delete(TrackedAccount).where(
            TrackedAccount.user_id == user_id,
            TrackedAccount.account_puuid == puuid,
        )
    )
    return bool(result.rowcount)


def list_accounts_for_sync(session: Session) -> list[RiotAccountIdentity]:
    """Accounts followed by at least one user, least recently synced first."""
    accounts = session.scalars(
        select(RiotAccount)
        .where(RiotAccount.puuid.in_(select(TrackedAccount.account_puuid)))
        .order_by(RiotAccount.synced_at.is_not(None), RiotAccount.synced_at, RiotAccount.puuid)
    ).all()
    return [_to_identity(account) for account in accounts]


def update_account_synced_at(session: Session, puuid: str, synced_at: int) -> bool:
    """Advance an account's sync cursor. Returns False for unknown accounts."""
    result = session.execute(
        update(RiotAccount).where(RiotAccount.puuid == puuid).values(synced_at=synced_at)
    )
    return bool(result.rowcount)
