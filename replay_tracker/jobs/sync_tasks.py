"""Scheduled match sync tasks.

``sync_tracked_accounts`` runs on the beat schedule and fans out one
``sync_account_matches`` task per tracked account, so accounts are synced
independently. A Redis lock per account keeps two passes for the same
account from overlapping.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable

from celery import shared_task

from ..config import settings
from ..logging import get_logger
from ..persistence import MatchRecordStore
from ..replays import ReplayFetcher
from ..riot import RiotClient
from ..services.match_sync import MatchSyncError, MatchSyncService
from ..utils.redis_lock import LOCK_TIMEOUT_1HOUR, acquire_redis_lock, release_redis_lock

logger = get_logger(__name__, environment=settings.environment)


def run_supervised(job_name: str, func: Callable[..., dict[str, Any]], *args: Any, **kwargs: Any) -> dict[str, Any]:
    """Run a job, turning any exception into a logged failure result.

    A failing job must not take the worker down with it; the result dict
    carries ``status`` ("ok" or "failed") for the task backend.
    """
    try:
        result = func(*args, **kwargs)
    except Exception as exc:
        logger.exception("job_failed", job=job_name, error=str(exc))
        return {"job": job_name, "status": "failed", "error": str(exc)}
    return {"job": job_name, "status": "ok", **result}


def _build_service() -> MatchSyncService:
    return MatchSyncService(
        riot_client=RiotClient(logger=logger),
        store=MatchRecordStore(logger=logger),
        fetcher=ReplayFetcher(logger=logger),
        logger=logger,
    )


def _close_service(service: MatchSyncService) -> None:
    service.riot_client.close()
    service.fetcher.close()


def _enqueue_tracked_accounts() -> dict[str, Any]:
    store = MatchRecordStore(logger=logger)
    accounts = store.list_accounts_for_sync()
    for account in accounts:
        sync_account_matches.delay(account.puuid)
    logger.info("match_sync_enqueued", accounts=len(accounts))
    return {"accounts_enqueued": len(accounts)}


def _sync_one_account(puuid: str) -> dict[str, Any]:
    lock_name = f"lock:sync_account:{puuid}"
    if not acquire_redis_lock(lock_name, timeout=LOCK_TIMEOUT_1HOUR):
        logger.debug("sync_account_skipped_locked", puuid=puuid)
        return {"skipped": True, "reason": "locked"}

    try:
        service = _build_service()
        try:
            account = service.store.get_account(puuid)
            if account is None:
                logger.warning("sync_account_unknown", puuid=puuid)
                return {"skipped": True, "reason": "unknown_account"}
            backfilled = 0
            if settings.sync_config.backfill_summaries:
                # Runs against the cursor before this pass moves it
                try:
                    backfilled = service.backfill_match_summaries(account)
                except MatchSyncError as exc:
                    logger.warning("match_backfill_failed", puuid=puuid, error=str(exc))
            summary = service.sync_account(account)
        finally:
            _close_service(service)
        return {**asdict(summary), "summaries_backfilled": backfilled}
    finally:
        release_redis_lock(lock_name)


@shared_task(name="sync_tracked_accounts")
def sync_tracked_accounts() -> dict:
    """Enqueue one sync task per tracked account (runs every sync interval)."""
    return run_supervised("sync_tracked_accounts", _enqueue_tracked_accounts)


@shared_task(name="sync_account_matches")
def sync_account_matches(puuid: str) -> dict:
    """Sync replays and match summaries for one account."""
    return run_supervised("sync_account_matches", _sync_one_account, puuid)
