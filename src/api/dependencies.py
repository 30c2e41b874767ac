"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests via app.dependency_overrides
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator
from uuid import UUID

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.media.models import AssetClass
from ..core.media.staging import StreamingStager
from ..core.media.uploader import MediaUploader, StorageBackend
from ..infrastructure.auth.tokens import get_bearer_token, validate_jwt
from ..infrastructure.snowflake.client import MockSnowflakeConnection, create_snowflake_connection
from ..infrastructure.snowflake.repositories.videos import SnowflakeConfig, VideoRepository
from ..infrastructure.storage.backends import (
    ObjectStoreConfig,
    create_object_store_backend,
    create_thumbnail_backend,
)

logger = logging.getLogger(__name__)

# Shared across requests. The mock connection must keep records between calls.
_mock_snowflake_connection = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def get_current_user_id(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> UUID:
    """
    Validate the bearer token and return the caller's user ID.

    Raises MissingOrInvalidCredentialError (401) if the header is missing
    or the token doesn't verify.
    """
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.jwt_secret, issuer=settings.jwt_issuer)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_video_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[VideoRepository, None, None]:
    """
    Provide VideoRepository with database connection.

    This is a generator function (yields instead of returns) because
    we need to manage the connection lifecycle: the real connection is
    closed after the request. In mock mode, we reuse the same connection
    across requests so that data persists during the session.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")

        yield VideoRepository(_mock_snowflake_connection)
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        with create_snowflake_connection(config=config) as conn:
            logger.debug("Created VideoRepository with Snowflake connection")
            yield VideoRepository(conn)


def get_object_store_backend(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageBackend:
    """
    Provide the video backend (S3 or in-memory mock).

    Built on first use and kept on ``app.state``, so each app gets a backend
    for its own settings and the boto3 client is reused across requests.
    """
    backend = getattr(request.app.state, "object_store_backend", None)
    if backend is None:
        config = ObjectStoreConfig(
            bucket_name=settings.s3_bucket,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
        backend = create_object_store_backend(config, mock_mode=settings.s3_mock_mode)
        request.app.state.object_store_backend = backend

    return backend


def get_thumbnail_backend(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageBackend:
    """Provide the thumbnail backend named by THUMBNAIL_STORAGE, one per app."""
    backend = getattr(request.app.state, "thumbnail_backend", None)
    if backend is None:
        backend = create_thumbnail_backend(
            settings.thumbnail_storage,
            assets_root=settings.assets_path,
            base_url=settings.base_url,
        )
        request.app.state.thumbnail_backend = backend

    return backend


def get_media_uploader(
    settings: Annotated[Settings, Depends(get_settings)],
    repository: Annotated[VideoRepository, Depends(get_video_repository)],
    thumbnail_backend: Annotated[StorageBackend, Depends(get_thumbnail_backend)],
    video_backend: Annotated[StorageBackend, Depends(get_object_store_backend)],
) -> MediaUploader:
    """
    Provide the upload pipeline wired to this request's repository.

    The uploader itself is stateless, so a new instance per request is
    cheap.
    """
    stager = StreamingStager(
        staging_dir=settings.staging_dir,
        chunk_size=settings.upload_chunk_size_bytes,
    )

    return MediaUploader(
        store=repository,
        stager=stager,
        backends={
            AssetClass.IMAGE: thumbnail_backend,
            AssetClass.VIDEO: video_backend,
        },
        size_limits={
            AssetClass.IMAGE: settings.max_thumbnail_size_bytes,
            AssetClass.VIDEO: settings.max_video_size_bytes,
        },
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
MediaUploaderDep = Annotated[MediaUploader, Depends(get_media_uploader)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
