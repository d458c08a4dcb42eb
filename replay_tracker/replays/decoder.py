"""Decoder for the ``.rofl`` replay container.

Container layout (all integers little-endian)::

    [16-byte container header]
    [12- or 13-byte secondary header]   selected by the byte at offset 12
    [chunk stream]                      repeated 17-byte header + body
    [256-byte signature block]
    [JSON metadata]
    [u32 metadata length]

Each chunk header is ``id:u32 type:u8 secondary_id:u32 uncompressed:u32
compressed:u32``. Bodies with a non-zero compressed length hold one or more
zstd frames; bodies that only carry an uncompressed length are skipped.

Decoding is pure CPU work on an in-memory buffer: callers read the file and
hand over the bytes, and either get every chunk or an exception.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path

import zstandard
from structlog.typing import FilteringBoundLogger

from ..logging import get_logger

METADATA_LENGTH_SIZE = 4
SIGNATURE_SIZE = 0x100
CONTAINER_HEADER_SIZE = 0x10
SECONDARY_HEADER_FLAG_OFFSET = 0xC
SECONDARY_HEADER_SHORT = 0xC
SECONDARY_HEADER_LONG = 0xD

CHUNK_HEADER = struct.Struct("<IBIII")
CHUNK_HEADER_SIZE = CHUNK_HEADER.size  # 17


class ReplayDecodeError(ValueError):
    """Raised when a replay container cannot be decoded."""


class ReplayTruncatedError(ReplayDecodeError):
    """The buffer ended inside the trailer or headers."""


class ReplayCorruptError(ReplayDecodeError):
    """A chunk body was short or failed to decompress."""


@dataclass(frozen=True)
class ReplayChunk:
    id: int
    type: int
    secondary_id: int
    uncompressed_length: int
    compressed_length: int
    payload: bytes = b""


def _strip_envelope(raw: bytes) -> memoryview:
    """Remove trailer, signature and headers, returning the chunk stream."""
    buf = memoryview(raw)

    if len(buf) < METADATA_LENGTH_SIZE:
        raise ReplayTruncatedError("file too short to hold the metadata length")
    (metadata_length,) = struct.unpack_from("<I", buf, len(buf) - METADATA_LENGTH_SIZE)
    if len(buf) < metadata_length + METADATA_LENGTH_SIZE:
        raise ReplayTruncatedError(
            f"metadata length {metadata_length} exceeds file size {len(buf)}"
        )
    buf = buf[: len(buf) - metadata_length - METADATA_LENGTH_SIZE]

    if len(buf) < SIGNATURE_SIZE:
        raise ReplayTruncatedError("file too short after metadata removal")
    buf = buf[: len(buf) - SIGNATURE_SIZE]

    if len(buf) < CONTAINER_HEADER_SIZE:
        raise ReplayTruncatedError("file too short for container header")
    buf = buf[CONTAINER_HEADER_SIZE:]

    if len(buf) < SECONDARY_HEADER_LONG:
        raise ReplayTruncatedError("file too short for secondary header")
    # Two historical header lengths exist; the flag byte picks between them.
    if buf[SECONDARY_HEADER_FLAG_OFFSET] == 1:
        return buf[SECONDARY_HEADER_SHORT:]
    return buf[SECONDARY_HEADER_LONG:]


class ReplayDecoder:
    """Splits a replay container into its chunks.

    One zstd decompression context is shared by every chunk of every call;
    zstd contexts are not thread safe, so use one decoder per thread.
    """

    def __init__(self, logger: FilteringBoundLogger | None = None) -> None:
        self._logger = logger or get_logger(__name__)
        self._dctx = zstandard.ZstdDecompressor()

    def decode(self, raw: bytes) -> list[ReplayChunk]:
        stream = _strip_envelope(raw)
        chunks: list[ReplayChunk] = []
        offset = 0
        end = len(stream)

        while end - offset >= CHUNK_HEADER_SIZE:
            chunk_id, chunk_type, secondary_id, uncompressed_length, compressed_length = (
                CHUNK_HEADER.unpack_from(stream, offset)
            )
            offset += CHUNK_HEADER_SIZE
            payload = b""

            if compressed_length:
                if end - offset < compressed_length:
                    raise ReplayCorruptError(
                        f"chunk {chunk_id} declares {compressed_length} compressed bytes, "
                        f"only {end - offset} remain"
                    )
                body = stream[offset : offset + compressed_length]
                offset += compressed_length
                payload = self._decompress(chunk_id, bytes(body))
            elif uncompressed_length:
                # Raw bodies are not used downstream; skip without copying.
                offset += uncompressed_length

            chunks.append(
                ReplayChunk(
                    id=chunk_id,
                    type=chunk_type,
                    secondary_id=secondary_id,
                    uncompressed_length=uncompressed_length,
                    compressed_length=compressed_length,
                    payload=payload,
                )
            )

        self._logger.debug("replay_decoded", chunks=len(chunks), trailing_bytes=max(end - offset, 0))
        return chunks

    def _decompress(self, chunk_id: int, body: bytes) -> bytes:
        """Decode every frame in ``body``; a cut-off frame or trailing junk is corrupt."""
        parts: list[bytes] = []
        remaining = body
        try:
            while remaining:
                dobj = self._dctx.decompressobj()
                parts.append(dobj.decompress(remaining))
                if not dobj.eof:
                    raise ReplayCorruptError(f"chunk {chunk_id} ends inside a zstd frame")
                remaining = dobj.unused_data
        except zstandard.ZstdError as exc:
            raise ReplayCorruptError(f"chunk {chunk_id} failed to decompress: {exc}") from exc
        return b"".join(parts)

    def decode_file(self, path: Path | str) -> list[ReplayChunk]:
        """Read a replay from disk and decode it."""
        raw = Path(path).read_bytes()
        return self.decode(raw)


def decode_replay(raw: bytes) -> list[ReplayChunk]:
    """Decode a replay buffer with a throwaway decoder."""
    return ReplayDecoder().decode(raw)
