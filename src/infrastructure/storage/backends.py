"""
Storage backends for uploaded assets.

Three interchangeable ways to persist staged bytes, all implementing the
``StorageBackend`` protocol from the core:

- LocalFilesystemBackend: a flat directory served under ``/assets``.
- InlineDataUrlBackend: no storage at all, the bytes are embedded in a
  ``data:`` URI stored on the record. Thumbnails only.
- S3ObjectStoreBackend: one ``put_object`` per upload against S3 or an
  S3-compatible store (R2, MinIO).

Plus a mock object store that keeps objects in memory, enabling local
development and tests without credentials.

boto3 and file writes are blocking, so they run in a worker thread to keep
the event loop free while a large video is in flight.
"""

import asyncio
import base64
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ...core.media.errors import AssetIOError, InternalUploadError, UploadFailedError
from ...core.media.models import AssetPolicy, KeyEncoding, StorageKey
from ...core.media.staging import StagedPayload
from ...core.media.uploader import StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectStoreConfig:
    """
    Configuration for S3 or S3-compatible storage.

    ``endpoint_url`` is only needed for non-AWS stores. ``public_base_url``
    overrides the canonical AWS URL scheme when objects are served from
    somewhere else (an R2 public bucket, a CDN).
    """
    bucket_name: str
    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None


def build_object_url(config: ObjectStoreConfig, key: StorageKey) -> str:
    """Public URL of an object: ``https://<bucket>.s3.<region>.amazonaws.com/<key>``."""
    if config.public_base_url:
        return f"{config.public_base_url.rstrip('/')}/{key.name}"
    return f"https://{config.bucket_name}.s3.{config.region}.amazonaws.com/{key.name}"


# ---------------------------------------------------------------------------
# Local Filesystem
# ---------------------------------------------------------------------------

class LocalFilesystemBackend:
    """
    Writes assets to ``<assets_root>/<key>``.

    The file is fully written before the locator is returned. There is no
    write-to-temp-then-rename, so a crash mid-write can leave a truncated
    file behind under a name nothing points at.
    """

    key_encoding = KeyEncoding.BASE64URL

    def __init__(self, assets_root: Path, base_url: str) -> None:
        self._assets_root = Path(assets_root)
        self._base_url = base_url.rstrip("/")

        logger.info(
            "Initialized local asset storage",
            extra={"assets_root": str(self._assets_root), "base_url": self._base_url},
        )

    def path_for(self, key: StorageKey) -> Path:
        return self._assets_root / key.name

    def url_for(self, key: StorageKey) -> str:
        return f"{self._base_url}/assets/{key.name}"

    async def persist(
        self,
        staged: StagedPayload,
        key: StorageKey,
        policy: AssetPolicy,
    ) -> str:
        path = self.path_for(key)
        await asyncio.to_thread(self._write, staged, path)

        logger.info(
            "Stored asset on local filesystem",
            extra={"path": str(path), "size_bytes": staged.size},
        )
        return self.url_for(key)

    def _write(self, staged: StagedPayload, path: Path) -> None:
        try:
            with open(path, "wb") as dst:
                shutil.copyfileobj(staged.stream, dst)
        except OSError as e:
            logger.error(
                "Failed to write asset",
                extra={"path": str(path), "error": str(e)},
            )
            try:
                os.remove(path)
            except OSError:
                pass
            raise AssetIOError("Failed to save file") from e


# ---------------------------------------------------------------------------
# Inline Data URL
# ---------------------------------------------------------------------------

class InlineDataUrlBackend:
    """
    Embeds the asset in the locator itself.

    The record field ends up holding ``data:<media-type>;base64,<payload>``,
    so this only makes sense for small images. Size is bounded by the
    staging limit.
    """

    key_encoding = KeyEncoding.BASE64URL

    async def persist(
        self,
        staged: StagedPayload,
        key: StorageKey,
        policy: AssetPolicy,
    ) -> str:
        if not policy.inline_allowed:
            logger.error(
                "Inline storage configured for a non-inline asset",
                extra={"media_type": policy.media_type},
            )
            raise InternalUploadError("Inline storage is not allowed for this asset type")

        payload = base64.b64encode(staged.buffer).decode("ascii")

        logger.debug(
            "Encoded asset as data URL",
            extra={"size_bytes": staged.size, "encoded_length": len(payload)},
        )
        return f"data:{policy.media_type};base64,{payload}"


# ---------------------------------------------------------------------------
# Remote Object Store
# ---------------------------------------------------------------------------

class S3ObjectStoreBackend:
    """
    S3 object storage backend.

    Uses boto3, so any S3-compatible service works by setting an endpoint
    URL. One put per upload, no retries: a failed put fails the request and
    the record's locator stays as it was.
    """

    key_encoding = KeyEncoding.HEX

    def __init__(self, config: ObjectStoreConfig, s3_client: Any = None) -> None:
        """
        Initialize the S3 client with boto3.

        boto3 is imported here (not at module level) because mock mode
        doesn't need it. Tests can pass a prebuilt ``s3_client``.
        """
        self._config = config

        if s3_client is None:
            import boto3
            from botocore.config import Config

            s3_client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id or None,
                aws_secret_access_key=config.secret_access_key or None,
                region_name=config.region,
                config=Config(signature_version="s3v4"),
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized S3 object store",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": config.endpoint_url,
            },
        )

    async def persist(
        self,
        staged: StagedPayload,
        key: StorageKey,
        policy: AssetPolicy,
    ) -> str:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key.name,
                Body=staged.stream,
                ContentType=policy.media_type,
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={
                    "bucket": self._config.bucket_name,
                    "key": key.name,
                    "error": str(e),
                },
            )
            raise UploadFailedError("Failed to upload to object storage") from e

        logger.info(
            "Uploaded object",
            extra={
                "bucket": self._config.bucket_name,
                "key": key.name,
                "size_bytes": staged.size,
            },
        )
        return build_object_url(self._config, key)


# ---------------------------------------------------------------------------
# Mock Object Store for Local Development
# ---------------------------------------------------------------------------

class MockObjectStoreBackend:
    """
    In-memory object store for local development.

    Objects are kept in a dict keyed by object name and the returned
    locators follow the same URL scheme as the real store, so the API
    responses look the same with and without credentials.

    Not suitable for production, but perfect for development and testing.
    """

    key_encoding = KeyEncoding.HEX

    def __init__(self, config: ObjectStoreConfig) -> None:
        self._config = config
        self.objects: dict[str, tuple[bytes, str]] = {}
        logger.info("Initialized mock object store (in-memory)")

    async def persist(
        self,
        staged: StagedPayload,
        key: StorageKey,
        policy: AssetPolicy,
    ) -> str:
        data = await asyncio.to_thread(staged.stream.read)
        self.objects[key.name] = (data, policy.media_type)

        logger.debug(
            "Stored object in mock object store",
            extra={"key": key.name, "size_bytes": staged.size},
        )
        return build_object_url(self._config, key)


# ---------------------------------------------------------------------------
# Factory Functions
# ---------------------------------------------------------------------------

def create_thumbnail_backend(
    strategy: str,
    assets_root: Path,
    base_url: str,
) -> StorageBackend:
    """
    Create the thumbnail backend named by configuration.

    Args:
        strategy: "local" or "inline"
        assets_root: Directory for the local backend
        base_url: Public base URL the local backend builds locators from
    """
    if strategy == "inline":
        return InlineDataUrlBackend()
    if strategy == "local":
        return LocalFilesystemBackend(assets_root, base_url)
    raise ValueError(f"Unknown thumbnail storage strategy: {strategy}")


def create_object_store_backend(
    config: ObjectStoreConfig,
    mock_mode: bool = False,
) -> StorageBackend:
    """
    Create the video backend based on configuration.

    Returns the mock store when ``mock_mode`` is set, the boto3-backed
    store otherwise.
    """
    if mock_mode:
        return MockObjectStoreBackend(config)
    return S3ObjectStoreBackend(config)
