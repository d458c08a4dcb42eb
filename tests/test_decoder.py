"""Tests for replays/decoder.py module."""

from __future__ import annotations

import json

import pytest
import zstandard

from replay_tracker.replays.decoder import (
    CHUNK_HEADER,
    ReplayChunk,
    ReplayCorruptError,
    ReplayDecodeError,
    ReplayDecoder,
    ReplayTruncatedError,
    decode_replay,
)


def build_chunk(chunk_id: int, body: bytes = b"", *, compress: bool = True, chunk_type: int = 1,
                secondary_id: int = 0) -> bytes:
    if not body:
        return CHUNK_HEADER.pack(chunk_id, chunk_type, secondary_id, 0, 0)
    if compress:
        frame = zstandard.ZstdCompressor().compress(body)
        return CHUNK_HEADER.pack(chunk_id, chunk_type, secondary_id, len(body), len(frame)) + frame
    return CHUNK_HEADER.pack(chunk_id, chunk_type, secondary_id, len(body), 0) + body


def build_container(chunk_stream: bytes, *, metadata: bytes = b"", short_header: bool = False) -> bytes:
    secondary_header = bytes(12) if short_header else bytes(13)
    return (
        bytes(16)
        + secondary_header
        + chunk_stream
        + bytes(256)
        + metadata
        + len(metadata).to_bytes(4, "little")
    )


def minimal_container() -> bytes:
    """Empty metadata, one empty chunk with id 1, 13-byte secondary header."""
    return bytes(16) + bytes(13) + CHUNK_HEADER.pack(1, 0, 0, 0, 0) + bytes(256) + b"\x00\x00\x00\x00"


class TestMinimalContainer:
    """Tests for the smallest well-formed container."""

    def test_single_empty_chunk(self):
        """Decodes one chunk with an empty payload."""
        chunks = ReplayDecoder().decode(minimal_container())
        assert chunks == [
            ReplayChunk(
                id=1,
                type=0,
                secondary_id=0,
                uncompressed_length=0,
                compressed_length=0,
                payload=b"",
            )
        ]

    def test_zero_chunks_is_valid(self):
        """A container with no chunk stream decodes to an empty list."""
        assert decode_replay(build_container(b"")) == []

    def test_trailing_partial_header_is_ignored(self):
        """Fewer than 17 leftover bytes end the stream cleanly."""
        stream = build_chunk(7, b"hello world") + b"\x02\x00\x00"
        chunks = decode_replay(build_container(stream))
        assert [chunk.id for chunk in chunks] == [7]


class TestSecondaryHeader:
    """Tests for the 12/13-byte secondary header selection."""

    def test_flag_one_selects_short_header(self):
        """Byte 12 equal to 1 means the header is 12 bytes long."""
        # The flag byte is the first byte of the chunk stream here, so the
        # first chunk id must start with 0x01.
        stream = build_chunk(1, b"payload")
        chunks = decode_replay(build_container(stream, short_header=True))
        assert len(chunks) == 1
        assert chunks[0].id == 1
        assert chunks[0].payload == b"payload"

    def test_flag_zero_selects_long_header(self):
        stream = build_chunk(300, b"payload")
        chunks = decode_replay(build_container(stream))
        assert [chunk.id for chunk in chunks] == [300]


class TestRoundTrip:
    """Tests for containers with mixed compressed and raw chunks."""

    def test_chunks_come_back_in_order(self):
        """N headers come back; only compressed chunks carry a payload."""
        bodies = [f"chunk-{i}".encode() * (i + 1) for i in range(6)]
        compressed = {0, 2, 3, 5}
        stream = b"".join(
            build_chunk(i + 1, body, compress=i in compressed, chunk_type=i % 2, secondary_id=i * 10)
            for i, body in enumerate(bodies)
        )
        metadata = json.dumps({"gameLength": 1820000, "gameVersion": "14.20"}).encode()

        chunks = decode_replay(build_container(stream, metadata=metadata))

        assert [chunk.id for chunk in chunks] == [1, 2, 3, 4, 5, 6]
        assert [chunk.type for chunk in chunks] == [0, 1, 0, 1, 0, 1]
        assert [chunk.secondary_id for chunk in chunks] == [0, 10, 20, 30, 40, 50]
        for i, chunk in enumerate(chunks):
            assert chunk.uncompressed_length == len(bodies[i])
            if i in compressed:
                assert chunk.payload == bodies[i]
                assert chunk.compressed_length > 0
            else:
                assert chunk.payload == b""
                assert chunk.compressed_length == 0

    def test_decoder_is_reusable(self):
        """One decoder instance decodes several containers."""
        decoder = ReplayDecoder()
        first = decoder.decode(build_container(build_chunk(1, b"a" * 100)))
        second = decoder.decode(build_container(build_chunk(2, b"b" * 200)))
        assert first[0].payload == b"a" * 100
        assert second[0].payload == b"b" * 200

    def test_body_with_several_frames(self):
        """Concatenated frames in one body decode to the joined payload."""
        cctx = zstandard.ZstdCompressor()
        first, second = b"a" * 240, b"b" * 260
        frames = cctx.compress(first) + cctx.compress(second)
        stream = CHUNK_HEADER.pack(1, 1, 0, 500, len(frames)) + frames

        chunks = decode_replay(build_container(stream))

        assert chunks[0].payload == first + second

    def test_frame_without_content_size(self):
        """A frame that omits its size decodes fully even if the header understates it."""
        body = b"teamfight " * 60
        frame = zstandard.ZstdCompressor(write_content_size=False).compress(body)
        stream = CHUNK_HEADER.pack(1, 1, 0, 100, len(frame)) + frame

        chunks = decode_replay(build_container(stream))

        assert chunks[0].payload == body

    def test_decode_file(self, tmp_path):
        path = tmp_path / "4812345678.rofl"
        path.write_bytes(build_container(build_chunk(1, b"from disk")))
        chunks = ReplayDecoder().decode_file(path)
        assert chunks[0].payload == b"from disk"


class TestTruncation:
    """Tests for files that end inside the trailer or headers."""

    def test_every_short_prefix_is_truncated(self):
        """Any prefix shorter than trailer + signature + headers is rejected."""
        raw = minimal_container()
        # 4 (trailer) + 256 (signature) + 16 (header) + 13 (secondary header)
        for length in range(289):
            with pytest.raises(ReplayTruncatedError):
                decode_replay(raw[:length])

    def test_metadata_length_larger_than_file(self):
        raw = build_container(b"", metadata=b"{}")[:-4] + (10_000).to_bytes(4, "little")
        with pytest.raises(ReplayTruncatedError):
            decode_replay(raw)

    def test_empty_buffer(self):
        with pytest.raises(ReplayTruncatedError):
            decode_replay(b"")

    def test_truncated_is_decode_error(self):
        """Callers can catch both failure kinds through the base class."""
        with pytest.raises(ReplayDecodeError):
            decode_replay(b"\x00\x00")


class TestCorruption:
    """Tests for damaged chunk bodies."""

    def test_flipped_frame_bytes(self):
        """A damaged zstd frame raises ReplayCorruptError."""
        body = b"match events " * 50
        frame = bytearray(zstandard.ZstdCompressor().compress(body))
        frame[0] ^= 0xFF
        frame[1] ^= 0xFF
        stream = CHUNK_HEADER.pack(1, 1, 0, len(body), len(frame)) + bytes(frame)

        with pytest.raises(ReplayCorruptError):
            decode_replay(build_container(stream))

    def test_declared_length_exceeds_stream(self):
        """A compressed length past the end of the stream is corrupt, not truncated."""
        stream = CHUNK_HEADER.pack(1, 1, 0, 64, 500) + bytes(10)
        with pytest.raises(ReplayCorruptError):
            decode_replay(build_container(stream))

    def test_garbage_after_frame(self):
        """Bytes after the last frame that are not a frame are corrupt."""
        body = b"lane swap " * 30
        frame = zstandard.ZstdCompressor().compress(body) + b"\xde\xad\xbe\xef" * 4
        stream = CHUNK_HEADER.pack(1, 1, 0, len(body), len(frame)) + frame

        with pytest.raises(ReplayCorruptError):
            decode_replay(build_container(stream))

    def test_cut_off_frame(self):
        """A frame missing its tail is corrupt."""
        body = bytes(range(256)) * 8
        frame = zstandard.ZstdCompressor().compress(body)[:-6]
        stream = CHUNK_HEADER.pack(1, 1, 0, len(body), len(frame)) + frame

        with pytest.raises(ReplayCorruptError):
            decode_replay(build_container(stream))

    def test_no_partial_result_on_failure(self):
        """Chunks decoded before a failure are not returned."""
        good = build_chunk(1, b"fine")
        bad = CHUNK_HEADER.pack(2, 1, 0, 8, 8) + b"notzstd!"
        with pytest.raises(ReplayCorruptError):
            decode_replay(build_container(good + bad))
