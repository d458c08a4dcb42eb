"""Riot account and tracking models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class RiotAccount(Base):
    """A Riot account whose matches can be synced.

    ``synced_at`` is the sync cursor: epoch seconds of the last completed
    sync pass, NULL until the first pass finishes.
    """

    __tablename__ = "riot_accounts"

    puuid: Mapped[str] = mapped_column(String(78), primary_key=True)
    game_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tag_line: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(10), nullable=False)
    synced_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    trackers: Mapped[list["TrackedAccount"]] = relationship(
        "TrackedAccount",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("uq_riot_account_riot_id", "game_name", "tag_line", "region", unique=True),
    )


class TrackedAccount(Base):
    """A user following an account; tracked accounts are synced on schedule."""

    __tablename__ = "tracked_accounts"

    user_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    account_puuid: Mapped[str] = mapped_column(
        String(78),
        ForeignKey("riot_accounts.puuid", ondelete="CASCADE"),
        primary_key=True,
    )
    tracked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    account: Mapped[RiotAccount] = relationship("RiotAccount", back_populates="trackers")
