import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from matchduo.errors import AuthenticationError, NotFoundError, RateLimitedError, UserError, ValidationError

logger = structlog.get_logger(__name__)


def create_json_error_response(
    status_code: int, code: str, message: str, error_type: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Create JSON error response with a machine-readable code and coarse type."""
    content = {"code": code, "message": message, "type": error_type}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    headers = None
    if isinstance(exc, RateLimitedError):
        status_code = 429
        error_type = "rate_limited"
        headers = {"Retry-After": str(exc.retry_after)}
    elif isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    code = exc.code if isinstance(exc, UserError) else "BAD_REQUEST"
    return create_json_error_response(status_code, code, str(exc), error_type, headers)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        500, "INTERNAL_SERVER_ERROR", "An unexpected error occurred.", "internal_server_error"
    )
