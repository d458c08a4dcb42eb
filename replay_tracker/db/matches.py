"""Match and participant models.

Key rules:
1. matches.id is the upstream game id and never changes once created
2. a row with started_at NULL is a placeholder created by a replay-first sync
3. participants are keyed by (match_id, participant_id) and cascade with the match
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Match(Base):
    """Top-level match summary."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    started_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    queue_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    replay_synced: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    participants: Mapped[list["Participant"]] = relationship(
        "Participant",
        back_populates="match",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.participant_id",
    )


class Participant(Base):
    """One player's statistics for one match."""

    __tablename__ = "participants"

    match_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("matches.id", ondelete="CASCADE"),
        primary_key=True,
    )
    participant_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    champion_id: Mapped[int] = mapped_column(Integer, nullable=False)
    champ_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deaths: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_minions_killed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    double_kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    triple_kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quadra_kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    penta_kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item0: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item1: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item2: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item3: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item4: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item5: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item6: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summoner1_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summoner2_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lane: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    puuid: Mapped[str] = mapped_column(String(78), nullable=False)
    riot_id_game_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    riot_id_tagline: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    total_damage_dealt_to_champions: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_damage_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    win: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    match: Mapped[Match] = relationship("Match", back_populates="participants")

    __table_args__ = (
        Index("idx_participants_puuid", "puuid"),
        Index("idx_participants_champion", "champion_id"),
    )
