"""Account registration."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker
from structlog.typing import FilteringBoundLogger

from ..db import get_session
from ..logging import get_logger
from ..models import RiotAccountIdentity
from ..persistence import accounts as account_queries
from ..riot import RiotClient, get_api_region


def register_account(
    riot_client: RiotClient,
    game_name: str,
    tag_line: str,
    region: str,
    user_id: str,
    *,
    session_factory: sessionmaker[Session] | None = None,
    logger: FilteringBoundLogger | None = None,
) -> RiotAccountIdentity:
    """Resolve a Riot id upstream, store the account and track it for ``user_id``.

    Accounts already stored under the same Riot id are reused without an
    upstream lookup.
    """
    log = logger or get_logger(__name__)
    region = region.upper()
    get_api_region(region)  # rejects unknown regions before any I/O

    with get_session(session_factory) as session:
        account = account_queries.find_account(session, game_name, tag_line, region)

    if account is None:
        account = riot_client.fetch_account(game_name, tag_line, region)

    with get_session(session_factory) as session:
        account_queries.upsert_account(session, account)
        newly_tracked = account_queries.track_account(session, user_id, account.puuid)
        stored = account_queries.get_account(session, account.puuid)

    log.info(
        "account_registered",
        puuid=account.puuid,
        region=region,
        user_id=user_id,
        newly_tracked=newly_tracked,
    )
    return stored or account
