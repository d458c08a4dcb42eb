"""Celery app configuration for the replay tracker worker."""

from __future__ import annotations

from datetime import timedelta

from celery import Celery, signals

from .config import settings
from .logging import configure_logging, get_logger
from .utils.redis_lock import LOCK_TIMEOUT_1HOUR

configure_logging(settings)
logger = get_logger(__name__, environment=settings.environment)

QUEUE_NAME = "replay-tracker"

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": LOCK_TIMEOUT_1HOUR,  # hard limit; account locks live as long
    "task_soft_time_limit": 3300,  # 55 min soft limit
    "task_default_queue": QUEUE_NAME,
}

app = Celery(
    "replay-tracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["replay_tracker.jobs.tasks"],
)
app.conf.update(**celery_config)
app.conf.task_routes = {
    "sync_tracked_accounts": {"queue": QUEUE_NAME, "routing_key": QUEUE_NAME},
    "sync_account_matches": {"queue": QUEUE_NAME, "routing_key": QUEUE_NAME},
}
# Fan-out: one sync_account_matches task per tracked account per interval.
app.conf.beat_schedule = {
    "match-sync-every-interval": {
        "task": "sync_tracked_accounts",
        "schedule": timedelta(minutes=settings.sync_config.match_sync_interval_minutes),
        "options": {"queue": QUEUE_NAME, "routing_key": QUEUE_NAME},
    },
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    """Called when Celery worker is ready."""
    worker_name = getattr(sender, "hostname", None) or str(sender) if sender else "unknown"
    logger.info("celery_worker_ready", worker=worker_name)


@signals.worker_shutting_down.connect
def on_worker_shutting_down(sender=None, **kwargs):
    worker_name = str(sender) if sender else "unknown"
    logger.info("celery_worker_shutting_down", worker=worker_name)
