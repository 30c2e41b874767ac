"""
Upload orchestration.

``MediaUploader`` runs the ingestion pipeline for one request:

    authorize -> classify -> stage -> generate key -> persist -> write locator

Each step raises a ``MediaError`` subclass on failure and the remaining
steps don't run. There is no rollback: a failed persist leaves the record
untouched, and a failed metadata write leaves an orphaned object behind
(the same as a re-upload does).

Concurrent uploads to the same record race on the final write; the last
writer wins.
"""

import logging
from typing import Protocol
from uuid import UUID

from .content_types import classify
from .errors import InternalUploadError
from .keys import generate_key
from .models import AssetClass, AssetPolicy, KeyEncoding, StorageKey, Video
from .ownership import OwnershipGate, VideoStore
from .staging import ByteSource, StagedPayload, StreamingStager

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class StorageBackend(Protocol):
    """
    Interface for the places staged bytes can be persisted.

    Local filesystem, inline data URL and remote object store all implement
    this. ``key_encoding`` lets each backend keep its own key convention.
    """

    key_encoding: KeyEncoding

    async def persist(
        self,
        staged: StagedPayload,
        key: StorageKey,
        policy: AssetPolicy,
    ) -> str:
        """Persist the payload and return its locator."""
        ...


# ---------------------------------------------------------------------------
# Uploader Service
# ---------------------------------------------------------------------------

class MediaUploader:
    """
    Attaches uploaded assets to video records.

    Backend choice per asset class is fixed at construction; it is a
    deployment decision, not a per-request one.
    """

    def __init__(
        self,
        store: VideoStore,
        stager: StreamingStager,
        backends: dict[AssetClass, StorageBackend],
        size_limits: dict[AssetClass, int],
    ) -> None:
        missing = [c.value for c in AssetClass if c not in backends or c not in size_limits]
        if missing:
            raise ValueError(f"No backend or size limit configured for: {missing}")

        self._store = store
        self._gate = OwnershipGate(store)
        self._stager = stager
        self._backends = backends
        self._size_limits = size_limits

    async def upload(
        self,
        video_id: UUID,
        user_id: UUID,
        content_type: str | None,
        source: ByteSource,
        asset_class: AssetClass,
    ) -> Video:
        """
        Run the whole pipeline and return the updated record.

        ``asset_class`` says which field the caller is uploading; a valid
        content type of the other class is rejected.
        """
        video = self._gate.authorize(video_id, user_id)
        policy = classify(content_type, expected=asset_class)
        backend = self._backends[asset_class]

        logger.info(
            "Upload started",
            extra={
                "video_id": str(video_id),
                "user_id": str(user_id),
                "asset_class": asset_class.value,
                "media_type": policy.media_type,
            },
        )

        async with self._stager.stage(
            source,
            self._size_limits[asset_class],
            in_memory=asset_class is AssetClass.IMAGE,
            suffix=policy.suffix,
        ) as staged:
            key = generate_key(policy.suffix, backend.key_encoding)
            locator = await backend.persist(staged, key, policy)

        video.attach_locator(asset_class, locator)

        try:
            self._store.update_video(video)
        except Exception as e:
            logger.error(
                "Failed to update video metadata",
                extra={"video_id": str(video_id), "error": str(e)},
            )
            raise InternalUploadError("Failed to update video metadata") from e

        logger.info(
            "Upload complete",
            extra={
                "video_id": str(video_id),
                "asset_class": asset_class.value,
                "size_bytes": staged.size,
                "key": key.name,
            },
        )

        return video
