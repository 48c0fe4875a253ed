import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from minicrm.config import settings
from minicrm.errors import error_response

logger = structlog.get_logger()


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies whose declared Content-Length is over the limit."""

    def __init__(self, app, max_bytes: int = settings.MAX_REQUEST_SIZE_MB * 1024 * 1024):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > self.max_bytes:
            logger.warning(
                "request_too_large",
                path=request.url.path,
                content_length=int(length),
                max_bytes=self.max_bytes,
            )
            return error_response(413)
        return await call_next(request)
