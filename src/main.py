"""
Application factory for the Tubely media API.

    uvicorn src.main:app --reload --port 8091

``create_app`` takes an optional Settings object so tests can build an app
against temp directories and mock stores.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api.middleware import UploadSizeLimitMiddleware
from .api.routes import health, videos
from .config.settings import Settings, get_settings
from .core.media.errors import MediaError

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    On startup: make sure the assets directory exists (it is served
    statically) and report missing configuration.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Tubely API starting",
        extra={
            "version": __version__,
            "thumbnail_storage": settings.thumbnail_storage,
            "mock_mode": {
                "snowflake": settings.snowflake_mock_mode,
                "s3": settings.s3_mock_mode,
            }
        }
    )

    if settings.thumbnail_storage == "local":
        settings.assets_path.mkdir(parents=True, exist_ok=True)

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Tubely API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Pass ``settings`` to build an app with a specific configuration (tests
    do); otherwise the cached environment settings are used.
    """
    override = settings is not None
    settings = settings or get_settings()

    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Media API for Tubely videos.

        ## Authentication

        All endpoints except health checks require a bearer JWT in the
        `Authorization` header.

        ## Workflow

        1. **Create a video**: `POST /api/videos`
        2. **Upload a thumbnail**: `POST /api/thumbnail_upload/{video_id}`
           - multipart field `thumbnail`, PNG or JPEG
        3. **Upload the video**: `POST /api/video_upload/{video_id}`
           - multipart field `video`, MP4
        4. **Fetch the record**: `GET /api/videos/{video_id}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    if override:
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        UploadSizeLimitMiddleware,
        limits={
            "/api/thumbnail_upload/": settings.max_thumbnail_size_bytes,
            "/api/video_upload/": settings.max_video_size_bytes,
        },
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/api",
        tags=["Videos"],
    )

    if settings.thumbnail_storage == "local":
        app.mount(
            "/assets",
            StaticFiles(directory=settings.assets_root, check_dir=False),
            name="assets",
        )

    @app.exception_handler(MediaError)
    async def media_error_handler(request: Request, exc: MediaError):
        """Translate pipeline errors into their status code and safe message."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "error_type": type(exc).__name__,
                "detail": exc.detail,
                "cause": str(exc.__cause__) if exc.__cause__ else None,
            },
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed input is a 400, matching the rest of the error taxonomy."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Malformed request", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Anything unexpected is logged with its traceback and reported as a bare 500."""
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": __version__,
        }
    )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Field locations and messages only; the rejected input is not echoed back."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
