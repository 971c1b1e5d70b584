"""Error taxonomy and the FastAPI handlers that turn errors into JSON responses."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class FileGatewayError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class MissingFieldError(FileGatewayError):
    """A required request field was not supplied."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing required field"


class MissingUserError(FileGatewayError):
    """No user identifier could be resolved for the request."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "No userID provided"


class UnexpectedFieldError(FileGatewayError):
    """The multipart body carried files outside the single expected field."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Unexpected field"


class InvalidImageUrlError(FileGatewayError):
    """The image URL could not be parsed into a stored filename."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid image URL"


class UnsafePathError(FileGatewayError):
    """The resolved path escapes the user's directory."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid image path"


class FileTooLargeError(FileGatewayError):
    """The upload exceeds the configured size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = "File too large"

    def __init__(self, limit_bytes: int, message: str | None = None) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(message)


class StorageError(FileGatewayError):
    """A filesystem read, write or delete failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Storage operation failed"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_file_gateway_errors(request: Request, exc: FileGatewayError) -> JSONResponse:
    """Render a :class:`FileGatewayError` as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Collapse FastAPI's 422 validation payload into a single 400 error string."""
    messages = []
    for error in exc.errors():
        # drop the leading "body"/"query" element of the location
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return _error_response(status.HTTP_400_BAD_REQUEST, "; ".join(messages) or "Invalid request")


async def handle_http_exceptions(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep the status of framework-raised HTTP errors but use the ``error`` body shape."""
    # the static mount answers 405 for non-GET methods; those are unmatched routes
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return _error_response(status.HTTP_404_NOT_FOUND, "Invalid route")
    response = _error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates from a route handler."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(err))
