"""
Ownership checks for video records.

The gate is the first step of every upload: no bytes are staged for an
actor who doesn't own the record.
"""

import logging
from typing import Optional, Protocol
from uuid import UUID

from .errors import ForbiddenError, NotFoundError
from .models import Video

logger = logging.getLogger(__name__)


class VideoStore(Protocol):
    """
    Interface for the metadata store holding video records.

    The Snowflake repository implements this; tests use it with the
    in-memory mock connection.
    """

    def get_video(self, video_id: UUID) -> Optional[Video]:
        """Return the record, or None if it doesn't exist."""
        ...

    def update_video(self, video: Video) -> None:
        """Persist the mutable fields of an existing record."""
        ...


class OwnershipGate:
    """Fetches a record and confirms the actor owns it."""

    def __init__(self, store: VideoStore) -> None:
        self._store = store

    def authorize(self, video_id: UUID, user_id: UUID) -> Video:
        """
        Return the record if ``user_id`` owns it.

        Performs exactly one lookup. The returned record is meant to be
        reused for the final write rather than fetched again.
        """
        video = self._store.get_video(video_id)
        if video is None:
            logger.info("Video not found", extra={"video_id": str(video_id)})
            raise NotFoundError()

        if not video.is_owned_by(user_id):
            logger.warning(
                "Rejected access by non-owner",
                extra={"video_id": str(video_id), "user_id": str(user_id)},
            )
            raise ForbiddenError()

        return video
