import structlog
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from minicrm.errors import error_response

logger = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence: anything unhandled becomes a bare 500 envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "unhandled_error",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR)
