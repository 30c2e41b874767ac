"""
Asset storage backends.

Local filesystem and inline data URLs for thumbnails; S3 (or any
S3-compatible store) for videos, with an in-memory mock for local
development without credentials.
"""

from .backends import (
    InlineDataUrlBackend,
    LocalFilesystemBackend,
    MockObjectStoreBackend,
    ObjectStoreConfig,
    S3ObjectStoreBackend,
    build_object_url,
    create_object_store_backend,
    create_thumbnail_backend,
)

__all__ = [
    "InlineDataUrlBackend",
    "LocalFilesystemBackend",
    "MockObjectStoreBackend",
    "ObjectStoreConfig",
    "S3ObjectStoreBackend",
    "build_object_url",
    "create_object_store_backend",
    "create_thumbnail_backend",
]
