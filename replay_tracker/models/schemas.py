"""Pydantic models shared by the Riot client, persistence and services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..utils.datetime_utils import millis_to_epoch


class RiotModel(BaseModel):
    """Base for payloads exchanged with Riot (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MatchSummary(BaseModel):
    match_id: int
    started_at: int | None = None  # epoch seconds
    duration: int | None = None  # seconds
    queue_id: int = 0
    # None leaves an existing row's flag untouched on upsert
    replay_synced: bool | None = None

    @property
    def summary_fetched(self) -> bool:
        return self.started_at is not None


class ParticipantSummary(RiotModel):
    participant_id: int
    champion_id: int
    champ_level: int = 1
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    total_minions_killed: int = 0
    double_kills: int = 0
    triple_kills: int = 0
    quadra_kills: int = 0
    penta_kills: int = 0
    item0: int = 0
    item1: int = 0
    item2: int = 0
    item3: int = 0
    item4: int = 0
    item5: int = 0
    item6: int = 0
    summoner1_id: int = 0
    summoner2_id: int = 0
    lane: str = ""
    puuid: str
    riot_id_game_name: str = ""
    riot_id_tagline: str = ""
    total_damage_dealt_to_champions: int = 0
    total_damage_taken: int = 0
    win: bool = False


class MatchRecord(BaseModel):
    """A stored match with its participants, ordered by participant id."""

    summary: MatchSummary
    participants: list[ParticipantSummary] = Field(default_factory=list)


class MatchInfo(RiotModel):
    game_id: int
    game_start_timestamp: int | None = None  # milliseconds
    game_duration: int | None = None  # seconds
    queue_id: int = 0
    participants: list[ParticipantSummary] = Field(default_factory=list)


class MatchDetail(RiotModel):
    """Response of GET /lol/match/v5/matches/{matchId}."""

    info: MatchInfo

    def to_summary(self) -> MatchSummary:
        return MatchSummary(
            match_id=self.info.game_id,
            started_at=millis_to_epoch(self.info.game_start_timestamp),
            duration=self.info.game_duration,
            queue_id=self.info.queue_id,
        )


class ReplayList(BaseModel):
    """Response of GET /lol/match/v5/matches/by-puuid/{puuid}/replays."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    urls: list[str] = Field(default_factory=list, alias="matchFileURLs")


class RiotAccountIdentity(RiotModel):
    puuid: str
    game_name: str = ""
    tag_line: str = ""
    region: str | None = None
    synced_at: int | None = None


class MatchFilter(BaseModel):
    """Filters accepted by the match listing query.

    Match-level fields filter on the match row; participant-level fields match
    when at least one participant of the match satisfies all of them.
    """

    match_id: int | None = None
    started_at_min: int | None = None
    started_at_max: int | None = None
    replay_synced: bool | None = None
    puuid: str | None = None
    champion_id: int | None = None
    lane: str | None = None
    win: bool | None = None
