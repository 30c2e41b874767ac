"""
Request body limits for the upload routes.

FastAPI parses a multipart body before any dependency runs, so without a
guard in front of it the whole upload is spooled to disk before the bearer
token, ownership or size limit is looked at. This middleware sits in front
of the app and:

1. Rejects with 413 when ``Content-Length`` already exceeds the route's
   limit, without reading any of the body.
2. Counts body bytes as they are received otherwise (chunked uploads, or a
   client that lies about its length) and stops reading once the limit is
   passed, answering 413 instead of whatever the app produced.

The per-route limit is the file size limit plus an allowance for the
multipart framing around the file part.
"""

import logging
from typing import Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.media.errors import PayloadTooLargeError
from ..core.media.staging import format_size_limit

logger = logging.getLogger(__name__)

MULTIPART_OVERHEAD = 64 * 1024


class UploadSizeLimitMiddleware:
    """
    Pure ASGI middleware bounding request bodies by path prefix.

    Args:
        app: The wrapped ASGI application
        limits: Path prefix -> maximum file size in bytes
        overhead: Extra bytes allowed for multipart boundaries and headers
    """

    def __init__(
        self,
        app: ASGIApp,
        limits: dict[str, int],
        overhead: int = MULTIPART_OVERHEAD,
    ) -> None:
        self.app = app
        self._limits = limits
        self._overhead = overhead

    def _file_limit_for(self, path: str) -> Optional[int]:
        for prefix, limit in self._limits.items():
            if path.startswith(prefix):
                return limit
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method") != "POST":
            await self.app(scope, receive, send)
            return

        file_limit = self._file_limit_for(scope["path"])
        if file_limit is None:
            await self.app(scope, receive, send)
            return

        body_limit = file_limit + self._overhead

        content_length = _content_length(scope)
        if content_length is not None and content_length > body_limit:
            logger.warning(
                "Rejected upload by Content-Length",
                extra={"path": scope["path"], "content_length": content_length, "body_limit": body_limit},
            )
            await _reject(scope, receive, send, file_limit)
            return

        received = 0
        exceeded = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            if exceeded:
                return {"type": "http.disconnect"}

            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > body_limit:
                    exceeded = True
                    logger.warning(
                        "Upload body exceeded limit while streaming",
                        extra={"path": scope["path"], "bytes_read": received, "body_limit": body_limit},
                    )
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message: Message) -> None:
            # Once over the limit the app's own response (a parse error) is replaced.
            if not exceeded:
                await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded:
                raise
            logger.debug("App aborted after body limit was exceeded", exc_info=True)

        if exceeded:
            await _reject(scope, receive, send, file_limit)


def _content_length(scope: Scope) -> Optional[int]:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


async def _reject(scope: Scope, receive: Receive, send: Send, file_limit: int) -> None:
    error = PayloadTooLargeError(f"File too large. Maximum size: {format_size_limit(file_limit)}")
    response = JSONResponse(status_code=error.status_code, content={"detail": error.detail})
    await response(scope, receive, send)
