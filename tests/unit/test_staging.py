"""
Unit tests for upload staging.

The stager is async; tests drive it with asyncio.run so they stay plain
synchronous pytest functions.
"""

import asyncio
import io

import pytest

from conftest import AsyncBytesSource, FailingSource, png_bytes
from src.core.media.errors import AssetIOError, InternalUploadError, PayloadTooLargeError
from src.core.media.staging import StagedPayload, StreamingStager


def stage_and_read(stager, source, size_limit, in_memory):
    """Stage ``source`` and return (bytes read back, payload)."""

    async def run():
        async with stager.stage(source, size_limit, in_memory=in_memory, suffix="mp4") as staged:
            return staged.stream.read(), staged

    return asyncio.run(run())


# ---------------------------------------------------------------------------
# In-memory staging (thumbnails)
# ---------------------------------------------------------------------------

class TestInMemoryStaging:

    def test_content_round_trips_exactly(self):
        data = png_bytes(2048)
        stager = StreamingStager(chunk_size=300)

        read_back, staged = stage_and_read(stager, AsyncBytesSource(data), 10_000, in_memory=True)

        assert read_back == data
        assert staged.size == 2048
        assert staged.in_memory

    def test_buffer_is_available(self):
        data = b"tiny image"
        stager = StreamingStager()

        async def run():
            async with stager.stage(AsyncBytesSource(data), 100, in_memory=True) as staged:
                return staged.buffer

        assert asyncio.run(run()) == data

    def test_payload_exactly_at_limit_is_accepted(self):
        data = b"x" * 1000
        read_back, _ = stage_and_read(StreamingStager(chunk_size=64), AsyncBytesSource(data), 1000, True)
        assert read_back == data

    def test_one_byte_over_limit_is_rejected(self):
        with pytest.raises(PayloadTooLargeError):
            stage_and_read(StreamingStager(chunk_size=64), AsyncBytesSource(b"x" * 1001), 1000, True)

    def test_reading_stops_once_limit_is_exceeded(self):
        """A 1MB body against a 100 byte limit should not be read to the end."""
        source = AsyncBytesSource(b"x" * (1024 * 1024))

        with pytest.raises(PayloadTooLargeError):
            stage_and_read(StreamingStager(chunk_size=10), source, 100, True)

        assert source.read_calls == 11

    def test_empty_upload_stages_zero_bytes(self):
        read_back, staged = stage_and_read(StreamingStager(), AsyncBytesSource(b""), 100, True)

        assert read_back == b""
        assert staged.size == 0


# ---------------------------------------------------------------------------
# Spilled staging (videos)
# ---------------------------------------------------------------------------

class TestSpilledStaging:

    def test_content_round_trips_through_temp_file(self, tmp_path):
        data = bytes(range(256)) * 40
        stager = StreamingStager(staging_dir=str(tmp_path), chunk_size=1000)

        read_back, staged = stage_and_read(stager, AsyncBytesSource(data), 1 << 20, in_memory=False)

        assert read_back == data
        assert staged.size == len(data)
        assert not staged.in_memory

    def test_temp_file_exists_while_staged(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path))

        async def run():
            async with stager.stage(AsyncBytesSource(b"abc"), 100, in_memory=False, suffix="mp4") as staged:
                assert staged.path.exists()
                assert staged.path.parent == tmp_path
                assert staged.path.name.startswith("tubely-upload-")
                assert staged.path.suffix == ".mp4"

        asyncio.run(run())

    def test_temp_file_removed_after_success(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path))

        stage_and_read(stager, AsyncBytesSource(b"video bytes"), 100, in_memory=False)

        assert list(tmp_path.iterdir()) == []

    def test_temp_file_removed_when_too_large(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path), chunk_size=16)

        with pytest.raises(PayloadTooLargeError):
            stage_and_read(stager, AsyncBytesSource(b"x" * 500), 100, in_memory=False)

        assert list(tmp_path.iterdir()) == []

    def test_temp_file_removed_when_block_raises(self, tmp_path):
        """Failures downstream of staging (a backend error, say) still clean up."""
        stager = StreamingStager(staging_dir=str(tmp_path))

        async def run():
            async with stager.stage(AsyncBytesSource(b"abc"), 100, in_memory=False):
                raise RuntimeError("backend exploded")

        with pytest.raises(RuntimeError, match="backend exploded"):
            asyncio.run(run())

        assert list(tmp_path.iterdir()) == []

    def test_read_failure_is_io_error_and_cleans_up(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path))

        with pytest.raises(AssetIOError):
            stage_and_read(stager, FailingSource(), 100, in_memory=False)

        assert list(tmp_path.iterdir()) == []

    def test_unusable_staging_dir_is_io_error(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path / "missing"))

        with pytest.raises(AssetIOError):
            stage_and_read(stager, AsyncBytesSource(b"abc"), 100, in_memory=False)

    def test_spilled_payload_has_no_buffer(self, tmp_path):
        stager = StreamingStager(staging_dir=str(tmp_path))

        async def run():
            async with stager.stage(AsyncBytesSource(b"abc"), 100, in_memory=False) as staged:
                return staged.buffer

        with pytest.raises(InternalUploadError):
            asyncio.run(run())


class TestStreamingStagerConfig:

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            StreamingStager(chunk_size=0)

    def test_staged_payload_defaults_to_in_memory(self):
        payload = StagedPayload(stream=io.BytesIO(b"a"), size=1)
        assert payload.in_memory
