"""Shared database query utilities."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def upsert_insert(session: Session, model: type) -> Any:
    """Return an ``INSERT`` supporting ``on_conflict_*`` for the session's dialect.

    Args:
        session: Database session
        model: ORM model class to insert into

    Returns:
        A PostgreSQL insert in production, a SQLite insert in tests
    """
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)
