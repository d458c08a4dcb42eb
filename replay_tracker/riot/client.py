"""Riot Games API client (match-v5 and account-v1).

Pure HTTP: no database access. Every request carries the configured timeout
and is retried on 429 / 5xx responses.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from structlog.typing import FilteringBoundLogger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import RiotConfig, settings
from ..logging import get_logger
from ..models import MatchDetail, ReplayList, RiotAccountIdentity
from .regions import get_api_region

MATCH_IDS_PAGE_SIZE = 100  # maximum allowed by match-v5


class RiotAPIError(RuntimeError):
    """Raised when the Riot API returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RiotNotFoundError(RiotAPIError):
    """The requested resource does not exist upstream."""


class RiotRateLimitError(RiotAPIError):
    """Riot answered 429."""


class RiotServerError(RiotAPIError):
    """Riot answered 5xx."""


def _truncate_body(body: str | None, limit: int = 300) -> str | None:
    if not body:
        return None
    if len(body) <= limit:
        return body
    return f"{body[:limit]}..."


class RiotClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: RiotConfig | None = None,
        logger: FilteringBoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or settings.riot_config
        self._logger = logger or get_logger(__name__)
        api_key = api_key if api_key is not None else settings.riot_api_key
        if not api_key:
            self._logger.warning("riot_api_key_missing")
        self.client = httpx.Client(
            headers={
                "X-Riot-Token": api_key or "",
                "User-Agent": self._config.user_agent,
                "Accept": "application/json",
            },
            timeout=self._config.request_timeout_seconds,
            transport=transport,
        )
        self._get_json = retry(
            retry=retry_if_exception_type((RiotRateLimitError, RiotServerError, httpx.TransportError)),
            stop=stop_after_attempt(self._config.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._config.retry_wait_min_seconds,
                max=self._config.retry_wait_max_seconds,
            ),
            reraise=True,
        )(self._get_json_once)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> RiotClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def build_url(self, region: str, endpoint: str) -> str:
        host = self._config.host_template.format(region=get_api_region(region))
        return f"{host}{endpoint}"

    def _get_json_once(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self.client.get(url, params=params)
        if response.status_code == 200:
            return response.json()

        body = _truncate_body(response.text)
        self._logger.warning(
            "riot_request_failed",
            url=url,
            status=response.status_code,
            body=body,
        )
        message = f"Riot request failed: {url} ({response.status_code})"
        if response.status_code == 404:
            raise RiotNotFoundError(message, response.status_code)
        if response.status_code == 429:
            raise RiotRateLimitError(message, response.status_code)
        if response.status_code >= 500:
            raise RiotServerError(message, response.status_code)
        raise RiotAPIError(message, response.status_code)

    # -------------------------------------------------------------------------
    # match-v5
    # -------------------------------------------------------------------------
    def fetch_replay_urls(self, puuid: str, region: str) -> list[str]:
        """Fetch replay download URLs for an account, newest first."""
        url = self.build_url(region, f"/lol/match/v5/matches/by-puuid/{quote(puuid)}/replays")
        payload = self._get_json(url)
        return ReplayList.model_validate(payload).urls

    def fetch_match_detail(self, full_match_id: str, region: str) -> MatchDetail:
        """Fetch the summary and participants of one match (e.g. ``NA1_4812345678``)."""
        url = self.build_url(region, f"/lol/match/v5/matches/{quote(full_match_id)}")
        payload = self._get_json(url)
        return MatchDetail.model_validate(payload)

    def fetch_match_ids(self, puuid: str, region: str, start_time: int | None = None) -> list[str]:
        """Fetch up to 100 match ids, optionally only those after ``start_time`` (epoch seconds)."""
        if not puuid:
            raise ValueError("puuid cannot be empty")
        params: dict[str, Any] = {"count": MATCH_IDS_PAGE_SIZE}
        if start_time is not None:
            params["startTime"] = start_time
        url = self.build_url(region, f"/lol/match/v5/matches/by-puuid/{quote(puuid)}/ids")
        payload = self._get_json(url, params=params)
        return [str(match_id) for match_id in payload]

    # -------------------------------------------------------------------------
    # account-v1
    # -------------------------------------------------------------------------
    def fetch_account(self, game_name: str, tag_line: str, region: str) -> RiotAccountIdentity:
        """Resolve a Riot id (``gameName#tagLine``) to an account."""
        if not game_name or not tag_line or not region:
            raise ValueError("game_name, tag_line and region cannot be empty")
        url = self.build_url(
            region,
            f"/riot/account/v1/accounts/by-riot-id/{quote(game_name)}/{quote(tag_line)}",
        )
        payload = self._get_json(url)
        account = RiotAccountIdentity.model_validate(payload)
        return account.model_copy(update={"region": region})

    def fetch_account_by_puuid(self, puuid: str, region: str) -> RiotAccountIdentity:
        url = self.build_url(region, f"/riot/account/v1/accounts/by-puuid/{quote(puuid)}")
        payload = self._get_json(url)
        account = RiotAccountIdentity.model_validate(payload)
        return account.model_copy(update={"region": region})
