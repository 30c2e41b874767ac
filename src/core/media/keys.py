"""
Storage key generation.

Keys are 32 bytes from the OS CSPRNG. At 256 bits the birthday bound makes
collisions negligible, so there is no existence check and no retry.
"""

import base64
import logging
import secrets

from .errors import InternalUploadError
from .models import KeyEncoding, StorageKey

logger = logging.getLogger(__name__)

KEY_BYTES = 32


def encode_token(raw: bytes, encoding: KeyEncoding) -> str:
    if encoding is KeyEncoding.HEX:
        return raw.hex()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_key(suffix: str, encoding: KeyEncoding = KeyEncoding.BASE64URL) -> StorageKey:
    """
    Generate a fresh storage key named ``<token>.<suffix>``.

    Both encodings only use characters that are safe in a URL path
    segment. Failure to read entropy is fatal for the request.
    """
    try:
        raw = secrets.token_bytes(KEY_BYTES)
    except OSError as e:
        logger.error("Failed to read random bytes", extra={"error": str(e)})
        raise InternalUploadError("Failed to generate random file name") from e

    return StorageKey(token=encode_token(raw, encoding), suffix=suffix)
