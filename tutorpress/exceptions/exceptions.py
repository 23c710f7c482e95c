"""
Exceptions rendered as WordPress REST errors.

Every error leaving the API carries a machine-readable ``code`` (the same codes
the WordPress plugin emitted through WP_Error), a human message and an HTTP
status, serialized as ``{"code", "message", "data": {"status"}}``.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class TutorPressException(HTTPException):
    """Base exception for all API errors."""

    default_code = "rest_error"
    default_message = "Something went wrong."
    status_code_value = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        code: Optional[str] = None,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or self.default_message
        self.data = data or {}
        super().__init__(status_code=self.status_code_value, detail=self.message, headers=headers)

    def to_response(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": {"status": self.status_code, **self.data},
        }


# ============================================================================
# 400
# ============================================================================


class BadRequestException(TutorPressException):
    """Malformed input - 400"""

    default_code = "rest_invalid_param"
    default_message = "Invalid parameter(s)."
    status_code_value = status.HTTP_400_BAD_REQUEST


# ============================================================================
# 401 / 403
# ============================================================================


class UnauthorizedException(TutorPressException):
    """Not logged in - 401"""

    default_code = "rest_forbidden"
    default_message = "You must be logged in to access this endpoint."
    status_code_value = status.HTTP_401_UNAUTHORIZED

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(code=code, message=message, **kwargs)


class ForbiddenException(TutorPressException):
    """Capability check failed - 403"""

    default_code = "rest_forbidden"
    default_message = "You do not have permission to access this endpoint."
    status_code_value = status.HTTP_403_FORBIDDEN


# ============================================================================
# 404
# ============================================================================


class NotFoundException(TutorPressException):
    """Missing entity or entity of the wrong post type - 404"""

    default_code = "rest_not_found"
    default_message = "Not found."
    status_code_value = status.HTTP_404_NOT_FOUND


class AddonDisabledException(TutorPressException):
    """Feature flag off or Tutor addon disabled - 404"""

    default_code = "addon_disabled"
    default_message = "This feature is not enabled. Contact the site admin."
    status_code_value = status.HTTP_404_NOT_FOUND


# ============================================================================
# 500
# ============================================================================


class DependencyMissingException(TutorPressException):
    """Tutor LMS or one of its classes is unavailable - 500"""

    default_code = "tutor_not_active"
    default_message = "Tutor LMS is not active."
    status_code_value = status.HTTP_500_INTERNAL_SERVER_ERROR


class StorageFailureException(TutorPressException):
    """A write did not take effect - 500"""

    default_code = "save_failed"
    default_message = "Failed to save."
    status_code_value = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnexpectedException(TutorPressException):
    """Any other failure caught inside a handler - 500"""

    default_code = "internal_error"
    default_message = "An unexpected error occurred."
    status_code_value = status.HTTP_500_INTERNAL_SERVER_ERROR
