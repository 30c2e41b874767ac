"""
Error taxonomy for the upload pipeline.

Every failure the pipeline can surface is one of these exceptions. Each
carries a stable HTTP status code and a caller-safe message, so the API
layer can translate them without knowing which step raised them.

The underlying cause (boto3 error, OSError, ...) is chained with
``raise ... from e`` and logged where it happens. It is never part of
``detail``.
"""

from typing import Optional


class MediaError(Exception):
    """Base class for all upload pipeline failures."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidIdentifierError(MediaError):
    """Raised when a path identifier is not a valid UUID."""
    status_code = 400
    default_detail = "Invalid video ID"


class MalformedUploadError(MediaError):
    """Raised when the multipart body is missing the expected file field."""
    status_code = 400
    default_detail = "Malformed upload request"


class MissingOrInvalidCredentialError(MediaError):
    """Raised when the bearer token is absent, malformed, expired or forged."""
    status_code = 401
    default_detail = "Couldn't validate JWT"


class ForbiddenError(MediaError):
    """Raised when the actor does not own the record."""
    status_code = 403
    default_detail = "You do not own this video"


class NotFoundError(MediaError):
    """Raised when no record matches the identifier."""
    status_code = 404
    default_detail = "Video not found"


class MissingContentTypeError(MediaError):
    status_code = 400
    default_detail = "Missing Content-Type header"


class UnsupportedMediaTypeError(MediaError):
    status_code = 400
    default_detail = "Unsupported media type"


class PayloadTooLargeError(MediaError):
    status_code = 413
    default_detail = "Payload too large"


class AssetIOError(MediaError):
    """Raised when staging or a local write fails."""
    status_code = 500
    default_detail = "Failed to save file"


class UploadFailedError(MediaError):
    """Raised when the remote object store rejects or fails a put."""
    status_code = 500
    default_detail = "Failed to upload to object storage"


class InternalUploadError(MediaError):
    """Raised for entropy failures, misconfiguration and metadata write errors."""
    status_code = 500
    default_detail = "Internal server error"
