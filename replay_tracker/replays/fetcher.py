"""Replay file download.

Replays are stored at ``<storage_dir>/<match_id>.rofl``. A file is only ever
published by renaming a fully written temp file from the same directory, so
readers never observe a partial replay and concurrent downloads of the same
match leave one complete file behind.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO

import httpx
from structlog.typing import FilteringBoundLogger

from ..config import settings
from ..logging import get_logger
from .decoder import ReplayChunk, ReplayDecoder

REPLAY_SUFFIX = ".rofl"


class ReplayFetchError(RuntimeError):
    """Raised when a replay cannot be downloaded or stored."""


class ReplayFetcher:
    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        storage_dir: Path | str | None = None,
        min_size_bytes: int | None = None,
        chunk_size: int | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        sync_config = settings.sync_config
        self._logger = logger or get_logger(__name__)
        self._owns_client = http_client is None
        self.client = http_client or httpx.Client(
            timeout=settings.riot_config.request_timeout_seconds,
            follow_redirects=True,
        )
        self.storage_dir = Path(storage_dir or sync_config.replay_storage_dir)
        self.min_size_bytes = (
            min_size_bytes if min_size_bytes is not None else sync_config.replay_min_size_bytes
        )
        self.chunk_size = chunk_size or sync_config.download_chunk_size

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> ReplayFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def replay_path(self, match_id: int) -> Path:
        return self.storage_dir / f"{match_id}{REPLAY_SUFFIX}"

    def is_downloaded(self, match_id: int) -> bool:
        """True when a replay file larger than the minimum size exists."""
        path = self.replay_path(match_id)
        try:
            return path.stat().st_size > self.min_size_bytes
        except FileNotFoundError:
            return False

    def ensure_replay_downloaded(self, match_id: int, url: str) -> Path:
        """Download the replay for ``match_id`` unless a complete copy exists.

        Returns the final path. Raises ReplayFetchError on any HTTP, transport
        or filesystem failure; no partial file is left behind.
        """
        if not url:
            raise ReplayFetchError(f"no replay url for match {match_id}")

        path = self.replay_path(match_id)
        if self.is_downloaded(match_id):
            self._logger.debug("replay_already_downloaded", match_id=match_id, path=str(path))
            return path

        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.storage_dir, prefix=f".{match_id}.", suffix=".part"
            )
        except OSError as exc:
            raise ReplayFetchError(f"cannot create replay file for match {match_id}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                written = self._stream_to(handle, match_id, url)
            os.replace(tmp_path, path)
        except ReplayFetchError:
            tmp_path.unlink(missing_ok=True)
            raise
        except (httpx.HTTPError, OSError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise ReplayFetchError(f"replay download failed for match {match_id}: {exc}") from exc

        self._logger.info("replay_downloaded", match_id=match_id, path=str(path), bytes=written)
        return path

    def _stream_to(self, handle: BinaryIO, match_id: int, url: str) -> int:
        written = 0
        with self.client.stream("GET", url) as response:
            if response.status_code != 200:
                raise ReplayFetchError(
                    f"replay download for match {match_id} returned {response.status_code}"
                )
            expected = response.headers.get("Content-Length")
            encoded = "Content-Encoding" in response.headers
            for block in response.iter_bytes(self.chunk_size):
                handle.write(block)
                written += len(block)
            # Content-Length counts encoded bytes; without an encoding they are the bytes written
            received = response.num_bytes_downloaded if encoded else written
        if expected is not None and expected.isdigit() and received < int(expected):
            raise ReplayFetchError(
                f"replay download for match {match_id} ended after {received} of {expected} bytes"
            )
        return written

    def load_replay_chunks(
        self, match_id: int, decoder: ReplayDecoder | None = None
    ) -> list[ReplayChunk]:
        """Decode a previously downloaded replay."""
        path = self.replay_path(match_id)
        if not path.exists():
            raise ReplayFetchError(f"replay for match {match_id} has not been downloaded")
        decoder = decoder or ReplayDecoder(logger=self._logger)
        return decoder.decode_file(path)
