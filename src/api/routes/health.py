"""
Liveness and readiness checks.

/health answers as long as the process is up. /health/ready also checks
configuration, the metadata store and the assets directory, and answers
503 when any of them would make uploads fail.
"""

import logging
import os
from typing import Any
from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ... import __version__
from ...config.settings import Settings
from ...infrastructure.snowflake.repositories.videos import VideoRepository
from ..dependencies import SettingsDep, VideoRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness payload."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Outcome of one readiness check."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness payload with every check result."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="200 while the process is up. No dependency is contacted.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "api_version": settings.api_version,
            "thumbnail_storage": settings.thumbnail_storage,
            "mock_mode": {
                "snowflake": settings.snowflake_mock_mode,
                "s3": settings.s3_mock_mode,
            }
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="200 when uploads can be served, 503 otherwise.",
    responses={
        503: {
            "description": "At least one check failed",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(
    settings: SettingsDep,
    repository: VideoRepositoryDep,
):
    """Run every check; a single failure turns the whole response into a 503."""
    checks = [_check_configuration(settings), _check_database(settings, repository)]
    if settings.thumbnail_storage == "local":
        checks.append(_check_assets(settings))

    ready = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        checks=checks,
    )

    if ready:
        return response

    logger.warning(
        "Service not ready",
        extra={"failed": [c.name for c in checks if c.status != "ok"]},
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(),
    )


def _check_configuration(settings: Settings) -> ReadinessCheck:
    missing = settings.validate_required_fields()
    if missing:
        return ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing)}",
        )
    return ReadinessCheck(name="configuration", status="ok")


def _check_database(settings: Settings, repository: VideoRepository) -> ReadinessCheck:
    # A lookup of the nil UUID exercises the connection without touching real rows.
    try:
        repository.get_video(UUID(int=0))
    except Exception as e:
        logger.error("Metadata store check failed", extra={"error": str(e)})
        return ReadinessCheck(name="database", status="error", error=str(e))

    return ReadinessCheck(
        name="database",
        status="ok",
        error="mock mode" if settings.snowflake_mock_mode else None,
    )


def _check_assets(settings: Settings) -> ReadinessCheck:
    if os.access(settings.assets_path, os.W_OK):
        return ReadinessCheck(name="assets", status="ok")
    return ReadinessCheck(
        name="assets",
        status="error",
        error=f"{settings.assets_root} is not writable",
    )
