"""
Snowflake repository for video records.

The repository translates between ``Video`` domain objects and rows of the
``videos`` table, and is the only place that SQL for it lives:

    videos (
        video_id      VARCHAR PRIMARY KEY,
        user_id       VARCHAR NOT NULL,
        title         VARCHAR,
        description   VARCHAR,
        thumbnail_url VARCHAR,   -- may hold a full data: URI
        video_url     VARCHAR,
        created_at    TIMESTAMP_TZ,
        updated_at    TIMESTAMP_TZ
    )

It implements the core's ``VideoStore`` protocol.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

from src.core.media.models import Video

logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "TUBELY"
    schema: str = "MEDIA"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


class VideoNotFoundError(Exception):
    """Raised when updating a video that doesn't exist."""
    pass


_COLUMNS = """
    video_id, user_id, title, description,
    thumbnail_url, video_url, created_at, updated_at
"""


class VideoRepository:
    """
    Repository for video record persistence.

    Each method corresponds to a use case the application needs:
    - create_video: Insert a new draft record
    - get_video: Load one record by ID
    - update_video: Write back the mutable fields
    - list_videos_for_user: The caller's records, newest first
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def create_video(self, video: Video) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO videos ({_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """, self._to_row(video))
            self._conn.commit()

            logger.info(
                "Created video",
                extra={"video_id": str(video.id), "user_id": str(video.user_id)},
            )

        except Exception as e:
            logger.error(
                "Failed to create video",
                extra={"video_id": str(video.id), "error": str(e)},
            )
            raise
        finally:
            cursor.close()

    def get_video(self, video_id: UUID) -> Optional[Video]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM videos
                WHERE video_id = %s
            """, (str(video_id),))

            row = cursor.fetchone()
            return self._from_row(row) if row else None

        finally:
            cursor.close()

    def update_video(self, video: Video) -> None:
        """
        Write title, description, locators and ``updated_at``.

        There is no version check: concurrent writers to the same record
        overwrite each other.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE videos SET
                    title = %s,
                    description = %s,
                    thumbnail_url = %s,
                    video_url = %s,
                    updated_at = %s
                WHERE video_id = %s
            """, (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                video.updated_at,
                str(video.id),
            ))

            if cursor.rowcount == 0:
                raise VideoNotFoundError(f"Video {video.id} not found")

            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to update video",
                extra={"video_id": str(video.id), "error": str(e)},
            )
            raise
        finally:
            cursor.close()

    def list_videos_for_user(self, user_id: UUID, limit: int = 100) -> list[Video]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM videos
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s
            """, (str(user_id), limit))

            return [self._from_row(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    @staticmethod
    def _to_row(video: Video) -> tuple:
        return (
            str(video.id),
            str(video.user_id),
            video.title,
            video.description,
            video.thumbnail_url,
            video.video_url,
            video.created_at,
            video.updated_at,
        )

    @staticmethod
    def _from_row(row) -> Video:
        return Video(
            id=UUID(row[0]),
            user_id=UUID(row[1]),
            title=row[2] or "",
            description=row[3] or "",
            thumbnail_url=row[4],
            video_url=row[5],
            created_at=row[6],
            updated_at=row[7],
        )
