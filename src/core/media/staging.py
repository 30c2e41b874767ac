"""
Bounded staging of inbound upload streams.

The stager reads an upload in chunks and makes the bytes available to a
storage backend as a re-readable stream positioned at offset 0. Two modes:

- in memory: small assets (thumbnails). The payload also exposes a
  contiguous buffer, which the inline data-URL backend needs.
- spilled: large assets (videos). Bytes go to a named temporary file so
  concurrent uploads don't hold a gigabyte each in process memory.

``stage`` is an async context manager. Whatever happens inside the block,
the temporary file is closed and deleted when the block exits.
"""

import io
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional, Protocol

from .errors import AssetIOError, InternalUploadError, PayloadTooLargeError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024
TEMP_PREFIX = "tubely-upload-"


class ByteSource(Protocol):
    """
    Anything with an async ``read``.

    FastAPI's ``UploadFile`` satisfies this, as do the small wrappers the
    tests use.
    """

    async def read(self, size: int = -1) -> bytes:
        ...


@dataclass
class StagedPayload:
    """Bytes ready for persistence."""
    stream: BinaryIO
    size: int
    path: Optional[Path] = None  # set when spilled to disk

    @property
    def in_memory(self) -> bool:
        return self.path is None

    @property
    def buffer(self) -> bytes:
        """The whole payload as one bytes object. Only for in-memory payloads."""
        if not isinstance(self.stream, io.BytesIO):
            raise InternalUploadError("Staged payload is not buffered in memory")
        return self.stream.getvalue()


def format_size_limit(size_limit: int) -> str:
    mb = size_limit / (1024 * 1024)
    if mb >= 1:
        return f"{mb:g}MB"
    return f"{size_limit} bytes"


class StreamingStager:
    """Reads upload streams into bounded, re-readable staging storage."""

    def __init__(
        self,
        staging_dir: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._staging_dir = staging_dir
        self._chunk_size = chunk_size

    @asynccontextmanager
    async def stage(
        self,
        source: ByteSource,
        size_limit: int,
        *,
        in_memory: bool,
        suffix: str = "",
    ) -> AsyncIterator[StagedPayload]:
        """
        Stage ``source`` and yield the payload.

        Raises PayloadTooLargeError as soon as more than ``size_limit``
        bytes have been read, and AssetIOError on any read/write failure.
        """
        path: Optional[Path] = None
        if in_memory:
            sink: BinaryIO = io.BytesIO()
        else:
            try:
                sink = tempfile.NamedTemporaryFile(
                    prefix=TEMP_PREFIX,
                    suffix=f".{suffix}" if suffix else "",
                    dir=self._staging_dir,
                    delete=False,
                )
            except OSError as e:
                logger.error("Failed to create temp file", extra={"error": str(e)})
                raise AssetIOError("Failed to create temp file") from e
            path = Path(sink.name)

        try:
            size = await self._copy(source, sink, size_limit)

            try:
                sink.seek(0)
            except OSError as e:
                raise AssetIOError("Failed to seek temp file") from e

            logger.debug(
                "Staged upload",
                extra={"size_bytes": size, "in_memory": in_memory},
            )
            yield StagedPayload(stream=sink, size=size, path=path)

        finally:
            sink.close()
            if path is not None:
                self._remove(path)

    async def _copy(self, source: ByteSource, sink: BinaryIO, size_limit: int) -> int:
        total = 0
        while True:
            try:
                chunk = await source.read(self._chunk_size)
            except OSError as e:
                logger.error("Failed to read upload stream", extra={"error": str(e)})
                raise AssetIOError("Failed to read upload") from e

            if not chunk:
                return total

            total += len(chunk)
            if total > size_limit:
                logger.warning(
                    "Upload exceeds size limit",
                    extra={"size_limit": size_limit, "bytes_read": total},
                )
                raise PayloadTooLargeError(
                    f"File too large. Maximum size: {format_size_limit(size_limit)}"
                )

            try:
                sink.write(chunk)
            except OSError as e:
                logger.error("Failed to write temp file", extra={"error": str(e)})
                raise AssetIOError("Failed to write temp file") from e

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            # The request outcome is already decided at this point.
            logger.warning(
                "Failed to remove temp file",
                extra={"path": str(path), "error": str(e)},
            )
