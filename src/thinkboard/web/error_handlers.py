import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from thinkboard.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    StorageUnavailable,
    UserError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses must precede their bases
ERROR_STATUS: list[tuple[type[UserError], int, str]] = [
    (AuthenticationError, 401, "authentication_error"),
    (AccessDeniedError, 403, "access_denied"),
    (NotFoundError, 404, "not_found"),
    (ValidationError, 400, "validation_error"),
    (ConflictError, 409, "conflict"),
    (ExpiredError, 410, "expired"),
    (StorageUnavailable, 503, "storage_unavailable"),
]


def create_json_error_response(
    status_code: int, message: str, error_type: str | None = None, field: str | None = None
) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_code, content=content)


def classify_error(exc: Exception) -> tuple[int, str]:
    """HTTP status and error type for a user-facing error."""
    for error_class, status_code, error_type in ERROR_STATUS:
        if isinstance(exc, error_class):
            return status_code, error_type
    return 400, "bad_request"


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    status_code, error_type = classify_error(exc)
    field = exc.field if isinstance(exc, ValidationError) else None
    if status_code >= 500:
        logger.warning("Storage unavailable: %s", exc)
    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type, field=field)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
