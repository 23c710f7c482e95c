"""
FastAPI exception handlers producing WordPress REST error bodies.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from tutorpress.exceptions.exceptions import (
    TutorPressException,
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    UnexpectedException,
)


logger = logging.getLogger(__name__)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


async def tutorpress_exception_handler(request: Request, exc: TutorPressException) -> JSONResponse:
    """Render a TutorPressException as {code, message, data: {status}}."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "%s %s -> %s %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
        extra={"request_id": _request_id(request)},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=exc.headers or {},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    WordPress answers invalid arguments with 400 rest_invalid_param and lists
    the offending parameters under data.params.
    """
    params = {}
    for error in exc.errors():
        loc = [str(x) for x in error["loc"][1:]]  # Skip 'body'/'query'/'path' prefix
        field = loc[0] if loc else "request"
        params[field] = error["msg"]

    invalid = ", ".join(params) or "request"
    exception = BadRequestException(
        message=f"Invalid parameter(s): {invalid}",
        data={"params": params},
    )
    return await tutorpress_exception_handler(request, exception)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Map plain HTTPExceptions (routing 404/405, etc.) onto the same body shape."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        converted = NotFoundException(code="rest_no_route", message="No route was found matching the URL and request method.")
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
        converted = UnauthorizedException(message=str(exc.detail))
    elif exc.status_code == status.HTTP_403_FORBIDDEN:
        converted = ForbiddenException(message=str(exc.detail))
    elif exc.status_code == status.HTTP_400_BAD_REQUEST:
        converted = BadRequestException(message=str(exc.detail))
    else:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": "rest_error", "message": str(exc.detail), "data": {"status": exc.status_code}},
            headers=getattr(exc, "headers", None) or {},
        )
    return await tutorpress_exception_handler(request, converted)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and return a generic internal error."""
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
        extra={"request_id": _request_id(request)},
    )
    exception = UnexpectedException()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=exception.to_response(),
    )
