"""
Content type validation.

Maps a declared MIME type (as sent on the multipart file part) to the
``AssetPolicy`` that governs the rest of the pipeline. Only the base type is
compared; parameters such as ``charset`` are ignored.
"""

import re
from typing import Optional

from .errors import MissingContentTypeError, UnsupportedMediaTypeError
from .models import AssetClass, AssetPolicy

# RFC 7230 token characters for type and subtype
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")

ACCEPTED_TYPES: dict[str, AssetPolicy] = {
    "image/png": AssetPolicy(AssetClass.IMAGE, "image/png", "png", inline_allowed=True),
    "image/jpeg": AssetPolicy(AssetClass.IMAGE, "image/jpeg", "jpg", inline_allowed=True),
    "image/jpg": AssetPolicy(AssetClass.IMAGE, "image/jpg", "jpg", inline_allowed=True),
    "video/mp4": AssetPolicy(AssetClass.VIDEO, "video/mp4", "mp4"),
}


def parse_media_type(header_value: Optional[str]) -> str:
    """
    Extract the lower-cased base type from a Content-Type header value.

    ``"image/PNG; charset=binary"`` -> ``"image/png"``. Raises
    MissingContentTypeError for an empty value and UnsupportedMediaTypeError
    when the base type is not ``type/subtype``.
    """
    if header_value is None or not header_value.strip():
        raise MissingContentTypeError()

    base = header_value.split(";", 1)[0].strip()
    if not base:
        raise MissingContentTypeError()

    if not _MEDIA_TYPE_RE.match(base):
        raise UnsupportedMediaTypeError("Invalid Content-Type")

    return base.lower()


def classify(
    header_value: Optional[str],
    expected: Optional[AssetClass] = None,
) -> AssetPolicy:
    """
    Return the policy for a declared content type.

    If ``expected`` is given, a recognised type of a different asset class
    (an MP4 sent to the thumbnail endpoint, say) is rejected as well.
    """
    media_type = parse_media_type(header_value)

    policy = ACCEPTED_TYPES.get(media_type)
    if policy is None:
        raise UnsupportedMediaTypeError(f"Unsupported media type: {media_type}")

    if expected is not None and policy.asset_class is not expected:
        if expected is AssetClass.VIDEO:
            raise UnsupportedMediaTypeError("Unsupported file type. Only MP4 allowed.")
        raise UnsupportedMediaTypeError("Unsupported image type")

    return policy
