"""
Media upload pipeline.

Contains the video record model, the error taxonomy and the pipeline
steps: ownership gate, content type validation, key generation, staging
and the uploader that ties them together.
"""

from .content_types import classify, parse_media_type
from .errors import (
    AssetIOError,
    ForbiddenError,
    InternalUploadError,
    InvalidIdentifierError,
    MalformedUploadError,
    MediaError,
    MissingContentTypeError,
    MissingOrInvalidCredentialError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    UploadFailedError,
)
from .keys import generate_key
from .models import AssetClass, AssetPolicy, KeyEncoding, StorageKey, Video
from .ownership import OwnershipGate, VideoStore
from .staging import ByteSource, StagedPayload, StreamingStager
from .uploader import MediaUploader, StorageBackend

__all__ = [
    "AssetClass",
    "AssetIOError",
    "AssetPolicy",
    "ByteSource",
    "ForbiddenError",
    "InternalUploadError",
    "InvalidIdentifierError",
    "KeyEncoding",
    "MalformedUploadError",
    "MediaError",
    "MediaUploader",
    "MissingContentTypeError",
    "MissingOrInvalidCredentialError",
    "NotFoundError",
    "OwnershipGate",
    "PayloadTooLargeError",
    "StagedPayload",
    "StorageBackend",
    "StorageKey",
    "StreamingStager",
    "UnsupportedMediaTypeError",
    "UploadFailedError",
    "Video",
    "VideoStore",
    "classify",
    "generate_key",
    "parse_media_type",
]
