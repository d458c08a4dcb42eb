"""Riot Games API access."""

from .client import (
    RiotAPIError,
    RiotClient,
    RiotNotFoundError,
    RiotRateLimitError,
    RiotServerError,
)
from .regions import get_api_region

__all__ = [
    "RiotAPIError",
    "RiotClient",
    "RiotNotFoundError",
    "RiotRateLimitError",
    "RiotServerError",
    "get_api_region",
]
