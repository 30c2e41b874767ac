"""
Domain models for media uploads.

These models describe the video record being decorated and the small value
objects the upload pipeline passes between its steps. Like the rest of
``core``, nothing here knows about HTTP, Snowflake or S3.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssetClass(Enum):
    """Coarse category governing accepted types, size limits and backends."""
    IMAGE = "image"
    VIDEO = "video"


class KeyEncoding(Enum):
    """How the random bytes of a storage key are rendered as text."""
    BASE64URL = "base64url"  # unpadded, RFC 4648 URL-safe alphabet
    HEX = "hex"


@dataclass(frozen=True)
class AssetPolicy:
    """
    What the pipeline is allowed to do with one declared content type.

    Produced by the content type validator and consulted by the stager
    (size limit, memory vs disk) and the backends (suffix, inline).
    """
    asset_class: AssetClass
    media_type: str
    suffix: str
    inline_allowed: bool = False


@dataclass(frozen=True)
class StorageKey:
    """
    A random token plus the policy suffix.

    Frozen because a key is a value: it names exactly one object and is
    never reused or mutated after generation.
    """
    token: str
    suffix: str

    @property
    def name(self) -> str:
        """File or object name: ``<token>.<suffix>``."""
        return f"{self.token}.{self.suffix}"

    def __str__(self) -> str:
        return self.name


@dataclass
class Video:
    """
    The owned record that uploads attach locators to.

    ``id`` and ``user_id`` never change after creation. The two locator
    fields are only written by the upload pipeline, after the owner check
    passed and the bytes were persisted.
    """
    user_id: UUID
    title: str = ""
    description: str = ""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    def attach_locator(self, asset_class: AssetClass, locator: str) -> None:
        """Point the field for ``asset_class`` at a freshly stored asset."""
        if asset_class is AssetClass.IMAGE:
            self.thumbnail_url = locator
        else:
            self.video_url = locator
        self.updated_at = _utcnow()
