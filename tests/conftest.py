"""
Shared fixtures for the test suite.

Nothing here touches real external services: Snowflake is the in-memory
mock connection, the object store is the in-memory mock backend, and the
filesystem is pytest's tmp_path.
"""

import io
from uuid import UUID, uuid4

import pytest

from src.core.media.models import Video
from src.infrastructure.snowflake.client import MockSnowflakeConnection
from src.infrastructure.snowflake.repositories.videos import VideoRepository


class AsyncBytesSource:
    """
    Minimal async byte source, shaped like FastAPI's UploadFile.

    Records how many read calls were made so tests can assert that
    nothing was staged.
    """

    def __init__(self, data: bytes) -> None:
        self._buffer = io.BytesIO(data)
        self.read_calls = 0

    async def read(self, size: int = -1) -> bytes:
        self.read_calls += 1
        return self._buffer.read(size)


class FailingSource:
    """Byte source whose reads always fail."""

    async def read(self, size: int = -1) -> bytes:
        raise OSError("connection reset")


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def repository() -> VideoRepository:
    return VideoRepository(MockSnowflakeConnection())


@pytest.fixture
def video(repository: VideoRepository, owner_id: UUID) -> Video:
    """A stored draft video owned by ``owner_id``."""
    record = Video(user_id=owner_id, title="Boots on the ground")
    repository.create_video(record)
    return record


def png_bytes(size: int) -> bytes:
    """``size`` bytes that start with the PNG signature."""
    signature = b"\x89PNG\r\n\x1a\n"
    return signature + bytes(i % 251 for i in range(size - len(signature)))
