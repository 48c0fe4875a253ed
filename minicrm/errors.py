"""Error taxonomy and the JSON error envelope.

Every error leaves the API as ``{message, status, timestamp}``; validation
errors add ``errors`` (field -> list of messages) and 405 adds
``allowed_methods``.
"""

from datetime import datetime, timezone
from http import HTTPStatus

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()

VALIDATION_MESSAGE = "The given data was invalid."

DEFAULT_MESSAGES = {
    status.HTTP_401_UNAUTHORIZED: "Unauthenticated.",
    status.HTTP_403_FORBIDDEN: "This action is unauthorized.",
    status.HTTP_404_NOT_FOUND: "Not found.",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed.",
    413: "File upload too large.",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "Internal server error",
}


class ApiError(Exception):
    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        self.message = message or DEFAULT_MESSAGES.get(status_code, "HTTP Error")
        super().__init__(self.message)


class NotFoundError(ApiError):
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found.")


class ValidationFailed(ApiError):
    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(422, VALIDATION_MESSAGE)


def error_body(status_code: int, message: str, **extra) -> dict:
    body = {
        "message": message,
        "status": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    body.update(extra)
    return body


def error_response(status_code: int, message: str | None = None, headers: dict | None = None, **extra) -> JSONResponse:
    message = message or DEFAULT_MESSAGES.get(status_code, "HTTP Error")
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, message, **extra),
        headers=headers,
    )


def field_errors_from_pydantic(errors: list[dict], skip_prefixes: tuple[str, ...] = ("body", "query", "path")) -> dict[str, list[str]]:
    """Collapse pydantic error dicts into ``{field: [message, ...]}``."""
    result: dict[str, list[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if str(part) not in skip_prefixes]
        field = ".".join(loc) or "body"
        result.setdefault(field, []).append(err.get("msg", "Invalid value."))
    return result


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, ValidationFailed):
        logger.info("validation_failed", path=request.url.path, fields=sorted(exc.errors))
        return error_response(exc.status_code, exc.message, errors=exc.errors)
    return error_response(exc.status_code, exc.message)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = field_errors_from_pydantic(exc.errors())
    logger.info("validation_failed", path=request.url.path, fields=sorted(errors))
    return error_response(422, VALIDATION_MESSAGE, errors=errors)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = getattr(exc, "headers", None)
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        allowed = (headers or {}).get("Allow")
        return error_response(exc.status_code, headers=headers, allowed_methods=allowed)

    # Starlette fills detail with the bare status phrase when none was given
    message = None
    if isinstance(exc.detail, str) and exc.detail != HTTPStatus(exc.status_code).phrase:
        message = exc.detail
    return error_response(exc.status_code, message, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
