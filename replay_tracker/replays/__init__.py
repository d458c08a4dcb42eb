"""Replay download and container decoding."""

from .decoder import (
    ReplayChunk,
    ReplayCorruptError,
    ReplayDecodeError,
    ReplayDecoder,
    ReplayTruncatedError,
    decode_replay,
)
from .fetcher import ReplayFetcher, ReplayFetchError

__all__ = [
    "ReplayChunk",
    "ReplayCorruptError",
    "ReplayDecodeError",
    "ReplayDecoder",
    "ReplayFetchError",
    "ReplayFetcher",
    "ReplayTruncatedError",
    "decode_replay",
]
