"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import os

import pytest

# Set required environment variables before any imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ENVIRONMENT", "development")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from replay_tracker.db import Base, create_db_engine  # noqa: E402
from replay_tracker.models import MatchSummary, ParticipantSummary  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite engine with the full schema and foreign keys on."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'replay_tracker.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


def make_participant(participant_id: int, **overrides) -> ParticipantSummary:
    values = {
        "participant_id": participant_id,
        "champion_id": 100 + participant_id,
        "champ_level": 18,
        "kills": participant_id,
        "deaths": 2,
        "assists": 7,
        "total_minions_killed": 180,
        "lane": "MIDDLE",
        "puuid": f"puuid-{participant_id}",
        "riot_id_game_name": f"Player{participant_id}",
        "riot_id_tagline": "NA1",
        "total_damage_dealt_to_champions": 21000,
        "total_damage_taken": 19000,
        "win": participant_id <= 5,
    }
    values.update(overrides)
    return ParticipantSummary(**values)


def make_summary(match_id: int = 4812345678, **overrides) -> MatchSummary:
    values = {
        "match_id": match_id,
        "started_at": 1_700_000_000,
        "duration": 1820,
        "queue_id": 420,
    }
    values.update(overrides)
    return MatchSummary(**values)


@pytest.fixture
def sample_match_detail():
    """Sample match-v5 detail payload."""
    return {
        "metadata": {"matchId": "NA1_4812345678"},
        "info": {
            "gameId": 4812345678,
            "gameStartTimestamp": 1_700_000_000_123,
            "gameDuration": 1820,
            "queueId": 420,
            "participants": [
                {
                    "participantId": 1,
                    "championId": 157,
                    "champLevel": 17,
                    "kills": 9,
                    "deaths": 3,
                    "assists": 6,
                    "totalMinionsKilled": 211,
                    "doubleKills": 2,
                    "tripleKills": 1,
                    "quadraKills": 0,
                    "pentaKills": 0,
                    "item0": 3031,
                    "item1": 6673,
                    "item2": 3006,
                    "item3": 0,
                    "item4": 0,
                    "item5": 0,
                    "item6": 3340,
                    "summoner1Id": 4,
                    "summoner2Id": 14,
                    "lane": "MIDDLE",
                    "puuid": "puuid-1",
                    "riotIdGameName": "Yasuo Main",
                    "riotIdTagline": "NA1",
                    "totalDamageDealtToChampions": 25311,
                    "totalDamageTaken": 20450,
                    "win": True,
                },
                {
                    "participantId": 2,
                    "championId": 64,
                    "puuid": "puuid-2",
                    "lane": "JUNGLE",
                    "win": False,
                },
            ],
        },
    }


@pytest.fixture
def participant_factory():
    return make_participant


@pytest.fixture
def summary_factory():
    return make_summary
