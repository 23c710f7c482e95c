from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tutorpress.exceptions.exceptions import (
    TutorPressException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    AddonDisabledException,
    DependencyMissingException,
    StorageFailureException,
    UnexpectedException,
)
from tutorpress.exceptions.error_handlers import (
    tutorpress_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the WordPress-style error handlers on an application."""
    app.add_exception_handler(TutorPressException, tutorpress_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
