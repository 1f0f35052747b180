"""
Custom Exception Handling for EstateHub Backend

Provides consistent error response format across all API endpoints.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def error_payload(message: str, details: dict | None = None, **extra) -> dict:
    """Build the error envelope shared by views and the exception handler."""
    data = {'success': False, 'message': message}
    if details:
        data['details'] = details
    data.update(extra)
    return data


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error format.

    Error Response Format:
    {
        "success": false,
        "message": "Human-readable error message",
        "details": {...}  // Optional, additional context
    }
    """
    if isinstance(exc, APIException):
        return Response(exc.to_payload(), status=exc.status_code)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        message = str(exc.detail) if hasattr(exc, 'detail') else str(exc)
        details = None

        # Handle DRF validation errors specially
        if hasattr(exc, 'detail'):
            if isinstance(exc.detail, dict):
                details = exc.detail
                messages = []
                for field, errors in exc.detail.items():
                    if isinstance(errors, list):
                        messages.append(f"{field}: {', '.join(str(e) for e in errors)}")
                    else:
                        messages.append(f"{field}: {errors}")
                message = '; '.join(messages)
            elif isinstance(exc.detail, list):
                message = ', '.join(str(e) for e in exc.detail)

        response.data = error_payload(message, details)

    else:
        # Unexpected exceptions never leak internals
        logger.exception(f'Unhandled exception: {exc}')

        response = Response(
            error_payload('An unexpected error occurred'),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response


class APIException(Exception):
    """
    Base exception class for API errors.

    Usage:
        raise APIException('Something went wrong', status_code=400)
    """
    def __init__(self, message: str, status_code: int = 400, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_payload(self) -> dict:
        return error_payload(self.message, self.details)


class ValidationError(APIException):
    """Raised when request validation fails."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(APIException):
    """Raised when authentication fails."""
    def __init__(self, message: str = 'Authentication required'):
        super().__init__(message, status_code=401)


class PermissionDeniedError(APIException):
    """Raised when user lacks permission. `reason` tells the client why."""
    def __init__(self, message: str = 'Access denied', reason: str | None = None):
        super().__init__(message, status_code=403)
        self.reason = reason

    def to_payload(self) -> dict:
        if self.reason:
            return error_payload(self.message, self.details, reason=self.reason)
        return super().to_payload()


class NotFoundError(APIException):
    """Raised when a resource is not found."""
    def __init__(self, message: str = 'Resource not found'):
        super().__init__(message, status_code=404)


class ConflictError(APIException):
    """Raised when there's a conflict (e.g., duplicate resource)."""
    def __init__(self, message: str = 'Resource conflict', details: dict | None = None):
        super().__init__(message, status_code=409, details=details)
