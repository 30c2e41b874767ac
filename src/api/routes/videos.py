"""
Video record and upload API endpoints.

Handles the upload workflow:
1. Client creates a draft video record (POST /videos)
2. Client uploads a thumbnail (POST /thumbnail_upload/{video_id})
3. Client uploads the video file (POST /video_upload/{video_id})
4. Each upload returns the updated record with its new locator

Uploads are multipart/form-data with the file in a field named after the
asset ("thumbnail" or "video"). The part's own Content-Type decides
whether it is accepted.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel, Field

from ...core.media.errors import InvalidIdentifierError, MalformedUploadError
from ...core.media.models import AssetClass, Video
from ...core.media.ownership import OwnershipGate
from ..dependencies import CurrentUserId, MediaUploaderDep, VideoRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateVideoRequest(BaseModel):
    """Request to create a draft video record."""
    title: str = Field(min_length=1, max_length=200, description="Video title")
    description: str = Field(default="", max_length=5000, description="Video description")


class VideoResponse(BaseModel):
    """A video record as returned by the API."""
    id: UUID = Field(description="Video identifier")
    user_id: UUID = Field(description="Owner of the video")
    title: str = Field(description="Video title")
    description: str = Field(description="Video description")
    thumbnail_url: Optional[str] = Field(
        default=None,
        description="Thumbnail locator: an /assets URL or an inline data URL"
    )
    video_url: Optional[str] = Field(default=None, description="Object store URL of the video")
    created_at: datetime = Field(description="When the record was created")
    updated_at: datetime = Field(description="Last update time")

    @classmethod
    def from_domain(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def get_video_id(video_id: str) -> UUID:
    """Parse the path identifier, rejecting anything that isn't a UUID with 400."""
    try:
        return UUID(video_id)
    except ValueError as e:
        raise InvalidIdentifierError() from e


VideoId = Annotated[UUID, Depends(get_video_id)]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a video record",
    description="Create a draft video owned by the caller. Assets are uploaded separately.",
)
async def create_video(
    request: CreateVideoRequest,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
) -> VideoResponse:
    video = Video(user_id=user_id, title=request.title, description=request.description)
    repository.create_video(video)
    return VideoResponse.from_domain(video)


@router.get(
    "/videos",
    response_model=list[VideoResponse],
    summary="List my videos",
    description="Retrieve the caller's videos, newest first",
)
async def list_videos(
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
) -> list[VideoResponse]:
    return [VideoResponse.from_domain(v) for v in repository.list_videos_for_user(user_id)]


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get a video",
    description="Retrieve one of the caller's videos",
)
async def get_video(
    video_id: VideoId,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
) -> VideoResponse:
    video = OwnershipGate(repository).authorize(video_id, user_id)
    return VideoResponse.from_domain(video)


@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload a thumbnail",
    description="Attach a PNG or JPEG thumbnail to a video the caller owns",
)
async def upload_thumbnail(
    video_id: VideoId,
    user_id: CurrentUserId,
    uploader: MediaUploaderDep,
    thumbnail: Annotated[Optional[UploadFile], File(description="Thumbnail image (PNG or JPEG)")] = None,
) -> VideoResponse:
    """
    Upload a thumbnail for a video.

    Stored as a file under /assets or inline on the record, depending on
    THUMBNAIL_STORAGE. Max size: MAX_THUMBNAIL_SIZE_MB (default 10MB).
    """
    if thumbnail is None:
        raise MalformedUploadError("Missing thumbnail file")

    logger.info(
        "Thumbnail upload received",
        extra={
            "video_id": str(video_id),
            "user_id": str(user_id),
            "upload_filename": thumbnail.filename,
            "content_type": thumbnail.content_type,
        }
    )

    video = await uploader.upload(
        video_id,
        user_id,
        thumbnail.content_type,
        thumbnail,
        AssetClass.IMAGE,
    )
    return VideoResponse.from_domain(video)


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload a video file",
    description="Attach an MP4 file to a video the caller owns",
)
async def upload_video(
    video_id: VideoId,
    user_id: CurrentUserId,
    uploader: MediaUploaderDep,
    video: Annotated[Optional[UploadFile], File(description="Video file (MP4)")] = None,
) -> VideoResponse:
    """
    Upload the video file.

    The file is staged on disk and put to the object store in one
    request. Max size: MAX_VIDEO_SIZE_MB (default 1GB).
    """
    if video is None:
        raise MalformedUploadError("Missing video file")

    logger.info(
        "Video upload received",
        extra={
            "video_id": str(video_id),
            "user_id": str(user_id),
            "upload_filename": video.filename,
            "content_type": video.content_type,
        }
    )

    updated = await uploader.upload(
        video_id,
        user_id,
        video.content_type,
        video,
        AssetClass.VIDEO,
    )
    return VideoResponse.from_domain(updated)
