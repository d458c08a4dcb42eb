"""Match sync orchestration.

For each replay the upstream API lists for an account, decide whether the
match summary, the replay file, or neither still needs fetching, and persist
what was fetched. One bad match never aborts the pass; only failing to list
replays at all does.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta

import httpx
from structlog.typing import FilteringBoundLogger

from ..config import SyncConfig, settings
from ..logging import get_logger
from ..models import MatchFilter, MatchRecord, RiotAccountIdentity
from ..persistence import MatchRecordStore, MatchStoreError
from ..replays import ReplayFetcher, ReplayFetchError
from ..riot import RiotAPIError, RiotClient
from ..utils.datetime_utils import is_stale, now_epoch

REPLAY_URL_PATTERN = re.compile(r"([A-Z0-9]+_\d+)\.replay")
FULL_MATCH_ID_PATTERN = re.compile(r"^[A-Z0-9]+_(\d+)$")


class MatchIdParseError(ValueError):
    """A replay URL or match id did not contain a recognizable match id."""


class MatchSyncError(RuntimeError):
    """An account's sync pass could not run at all."""


def parse_full_match_id(full_match_id: str) -> int:
    """``NA1_4812345678`` -> ``4812345678``."""
    match = FULL_MATCH_ID_PATTERN.match(full_match_id)
    if not match:
        raise MatchIdParseError(f"not a match id: {full_match_id!r}")
    return int(match.group(1))


def extract_match_id(url: str) -> tuple[int, str]:
    """Return ``(match_id, full_match_id)`` from a replay download URL."""
    found = REPLAY_URL_PATTERN.search(url)
    if not found:
        raise MatchIdParseError(f"no match id in replay url: {url!r}")
    full_match_id = found.group(1)
    return parse_full_match_id(full_match_id), full_match_id


@dataclass(frozen=True)
class MatchSyncSummary:
    puuid: str
    replays_listed: int
    summaries_fetched: int
    replays_downloaded: int
    failures: int
    synced_at: int


_UPSTREAM_ERRORS = (RiotAPIError, httpx.HTTPError, ValueError)


class MatchSyncService:
    def __init__(
        self,
        riot_client: RiotClient,
        store: MatchRecordStore,
        fetcher: ReplayFetcher,
        *,
        logger: FilteringBoundLogger | None = None,
        sync_config: SyncConfig | None = None,
    ) -> None:
        self.riot_client = riot_client
        self.store = store
        self.fetcher = fetcher
        self._logger = logger or get_logger(__name__)
        self._config = sync_config or settings.sync_config

    def sync_account(self, account: RiotAccountIdentity) -> MatchSyncSummary:
        """Run one sync pass for an account and advance its cursor.

        Raises MatchSyncError, without touching the cursor, when the replay
        list cannot be fetched.
        """
        log = self._logger.bind(puuid=account.puuid, region=account.region)
        if not account.region:
            raise MatchSyncError(f"account {account.puuid} has no region")

        try:
            urls = self.riot_client.fetch_replay_urls(account.puuid, account.region)
        except _UPSTREAM_ERRORS as exc:
            log.error("replay_list_fetch_failed", error=str(exc))
            raise MatchSyncError(f"cannot list replays for {account.puuid}: {exc}") from exc

        log.info("match_sync_start", replays=len(urls))
        summaries_fetched = 0
        replays_downloaded = 0
        failures = 0

        for url in urls:
            try:
                match_id, full_match_id = extract_match_id(url)
            except MatchIdParseError as exc:
                log.warning("replay_url_unparseable", url=url, error=str(exc))
                failures += 1
                continue

            record = self.store.get_match(match_id)

            if record is None or not record.summary.summary_fetched:
                if self._sync_summary(log, account.region, match_id, full_match_id):
                    summaries_fetched += 1
                else:
                    failures += 1

            if record is None or not record.summary.replay_synced:
                if self._sync_replay(log, match_id, url):
                    replays_downloaded += 1
                else:
                    failures += 1

        # Advances even when individual matches failed; incomplete rows are
        # picked up again on the next pass.
        synced_at = now_epoch()
        self.store.update_account_synced_at(account.puuid, synced_at)

        summary = MatchSyncSummary(
            puuid=account.puuid,
            replays_listed=len(urls),
            summaries_fetched=summaries_fetched,
            replays_downloaded=replays_downloaded,
            failures=failures,
            synced_at=synced_at,
        )
        log.info(
            "match_sync_complete",
            summaries_fetched=summaries_fetched,
            replays_downloaded=replays_downloaded,
            failures=failures,
        )
        return summary

    def _sync_summary(
        self, log: FilteringBoundLogger, region: str, match_id: int, full_match_id: str
    ) -> bool:
        try:
            detail = self.riot_client.fetch_match_detail(full_match_id, region)
            summary = detail.to_summary().model_copy(update={"match_id": match_id})
            self.store.upsert_match_with_participants(summary, detail.info.participants)
        except (*_UPSTREAM_ERRORS, MatchStoreError) as exc:
            log.warning("match_summary_sync_failed", match_id=match_id, error=str(exc))
            return False
        return True

    def _sync_replay(self, log: FilteringBoundLogger, match_id: int, url: str) -> bool:
        try:
            self.fetcher.ensure_replay_downloaded(match_id, url)
            self.store.mark_replay_synced(match_id)
        except (ReplayFetchError, MatchStoreError) as exc:
            log.warning("replay_sync_failed", match_id=match_id, error=str(exc))
            return False
        return True

    def backfill_match_summaries(self, account: RiotAccountIdentity) -> int:
        """Fetch summaries for matches played since the cursor, replay or not.

        Uses the default sync window when the account was never synced.
        Returns the number of summaries stored. Does not move the cursor.
        """
        log = self._logger.bind(puuid=account.puuid, region=account.region)
        if not account.region:
            raise MatchSyncError(f"account {account.puuid} has no region")

        if account.synced_at is not None:
            start_time = account.synced_at + 1
        else:
            start_time = now_epoch() - self._config.default_sync_window_seconds

        try:
            full_ids = self.riot_client.fetch_match_ids(account.puuid, account.region, start_time)
        except _UPSTREAM_ERRORS as exc:
            log.error("match_ids_fetch_failed", error=str(exc))
            raise MatchSyncError(f"cannot list matches for {account.puuid}: {exc}") from exc

        stored = 0
        for full_match_id in full_ids:
            try:
                match_id = parse_full_match_id(full_match_id)
            except MatchIdParseError as exc:
                log.warning("match_id_unparseable", match_id=full_match_id, error=str(exc))
                continue
            record = self.store.get_match(match_id)
            if record is not None and record.summary.summary_fetched:
                continue
            if self._sync_summary(log, account.region, match_id, full_match_id):
                stored += 1

        log.info("match_backfill_complete", listed=len(full_ids), stored=stored)
        return stored

    def list_matches(
        self,
        filters: MatchFilter | None = None,
        account: RiotAccountIdentity | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[MatchRecord]:
        """Return stored matches, syncing the account first when its cursor is stale.

        A failed sync is logged and the stored data is returned anyway.
        """
        if account is not None:
            if filters is None:
                filters = MatchFilter(puuid=account.puuid)
            max_age = timedelta(minutes=self._config.stale_after_minutes)
            if is_stale(account.synced_at, max_age):
                try:
                    self.sync_account(account)
                except MatchSyncError as exc:
                    self._logger.warning(
                        "match_list_sync_failed", puuid=account.puuid, error=str(exc)
                    )
        return self.store.list_matches(filters, limit=limit, offset=offset)
