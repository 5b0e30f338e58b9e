"""
Error taxonomy shared by every service.

Services raise ``ServiceError`` subclasses; the HTTP layer turns them into the
standard error envelope (see ``handler.py``). The status code travels with the
error class so controllers never have to map them by hand.
"""

from typing import Any, Dict, Optional
from fastapi import status


class ServiceErrorCode:
    """Standard error codes for services"""

    # Validation
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_ADDRESS = "MISSING_ADDRESS"
    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    INVALID_ADDRESS = "INVALID_ADDRESS"

    # Authentication
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"
    EXPIRED_CHALLENGE = "EXPIRED_CHALLENGE"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"

    # Authorization
    FORBIDDEN = "FORBIDDEN"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Directory
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    CONFLICT = "CONFLICT"
    DUPLICATE_USERNAME = "DUPLICATE_USERNAME"
    DUPLICATE_ADDRESS = "DUPLICATE_ADDRESS"

    # System
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


class ServiceError(Exception):
    """
    Standardized service error for internal use.
    Gets converted to proper HTTP response by error handler.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = ServiceErrorCode.INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ServiceErrorCode.NOT_FOUND
    default_message = "Resource not found"


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ServiceErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class ExpiredError(UnauthorizedError):
    code = ServiceErrorCode.EXPIRED_TOKEN
    default_message = "Credential expired"


class MalformedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ServiceErrorCode.INVALID_INPUT
    default_message = "Malformed request"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = ServiceErrorCode.CONFLICT
    default_message = "Conflict"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ServiceErrorCode.FORBIDDEN
    default_message = "Forbidden"


class InternalError(ServiceError):
    default_message = "An unexpected error occurred. Please try again."


class MethodNotAllowedError(ServiceError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    code = ServiceErrorCode.METHOD_NOT_ALLOWED
    default_message = "Method not allowed"
