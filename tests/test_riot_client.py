"""Tests for riot/client.py and riot/regions.py modules."""

from __future__ import annotations

import httpx
import pytest

from replay_tracker.config import RiotConfig
from replay_tracker.riot import (
    RiotAPIError,
    RiotClient,
    RiotNotFoundError,
    RiotRateLimitError,
    RiotServerError,
    get_api_region,
)

FAST_RETRY = RiotConfig(retry_attempts=3, retry_wait_min_seconds=0, retry_wait_max_seconds=0)


def make_client(handler) -> RiotClient:
    return RiotClient("test-key", config=FAST_RETRY, transport=httpx.MockTransport(handler))


class TestRegions:
    def test_maps_platform_regions(self):
        assert get_api_region("NA") == "americas"
        assert get_api_region("euw") == "europe"
        assert get_api_region("KR") == "asia"
        assert get_api_region("OCE") == "sea"

    def test_unknown_region_raises(self):
        with pytest.raises(ValueError):
            get_api_region("XX")


class TestFetchReplayUrls:
    def test_returns_urls_and_sends_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"matchFileURLs": ["https://cdn.example.com/NA1_1.replay"]},
            )

        urls = make_client(handler).fetch_replay_urls("puuid-1", "NA")

        assert urls == ["https://cdn.example.com/NA1_1.replay"]
        assert seen[0].url.host == "americas.api.riotgames.com"
        assert seen[0].url.path == "/lol/match/v5/matches/by-puuid/puuid-1/replays"
        assert seen[0].headers["X-Riot-Token"] == "test-key"

    def test_missing_list_is_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        assert client.fetch_replay_urls("puuid-1", "NA") == []


class TestFetchMatchDetail:
    def test_parses_summary_and_participants(self, sample_match_detail):
        client = make_client(lambda request: httpx.Response(200, json=sample_match_detail))

        detail = client.fetch_match_detail("NA1_4812345678", "NA")
        summary = detail.to_summary()

        assert summary.match_id == 4812345678
        assert summary.started_at == 1_700_000_000
        assert summary.duration == 1820
        assert summary.queue_id == 420
        first, second = detail.info.participants
        assert first.champion_id == 157
        assert first.total_minions_killed == 211
        assert first.summoner1_id == 4
        assert first.riot_id_tagline == "NA1"
        assert first.win is True
        assert second.kills == 0
        assert second.lane == "JUNGLE"


class TestFetchMatchIds:
    def test_passes_start_time(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=["NA1_2", "NA1_1"])

        ids = make_client(handler).fetch_match_ids("puuid-1", "NA", start_time=1_700_000_000)

        assert ids == ["NA1_2", "NA1_1"]
        assert seen[0].url.params["startTime"] == "1700000000"
        assert seen[0].url.params["count"] == "100"

    def test_empty_puuid_raises(self):
        with pytest.raises(ValueError):
            make_client(lambda request: httpx.Response(200, json=[])).fetch_match_ids("", "NA")


class TestFetchAccount:
    def test_sets_region(self):
        payload = {"puuid": "puuid-1", "gameName": "Faker", "tagLine": "KR1"}
        client = make_client(lambda request: httpx.Response(200, json=payload))

        account = client.fetch_account("Faker", "KR1", "KR")

        assert account.puuid == "puuid-1"
        assert account.game_name == "Faker"
        assert account.tag_line == "KR1"
        assert account.region == "KR"

    def test_by_puuid(self):
        payload = {"puuid": "puuid-1", "gameName": "Faker", "tagLine": "KR1"}
        client = make_client(lambda request: httpx.Response(200, json=payload))
        assert client.fetch_account_by_puuid("puuid-1", "KR").region == "KR"


class TestErrors:
    def test_not_found_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"status": {"message": "Data not found"}})

        with pytest.raises(RiotNotFoundError):
            make_client(handler).fetch_match_detail("NA1_1", "NA")
        assert len(calls) == 1

    def test_rate_limit_is_retried_then_raised(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, json={})

        with pytest.raises(RiotRateLimitError):
            make_client(handler).fetch_replay_urls("puuid-1", "NA")
        assert len(calls) == FAST_RETRY.retry_attempts

    def test_server_error_recovers(self):
        responses = [httpx.Response(503), httpx.Response(200, json={"matchFileURLs": []})]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        assert make_client(handler).fetch_replay_urls("puuid-1", "NA") == []
        assert responses == []

    def test_forbidden_raises_api_error(self):
        with pytest.raises(RiotAPIError) as exc_info:
            make_client(lambda request: httpx.Response(403)).fetch_replay_urls("puuid-1", "NA")
        assert exc_info.value.status_code == 403
        assert not isinstance(exc_info.value, RiotServerError)
