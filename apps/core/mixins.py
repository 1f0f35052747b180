"""
Core View Mixins

Provides standardized authentication, parsing, and response patterns
for all API views in the application.
"""
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from rest_framework.response import Response

from .authentication import AuthenticatedUser, get_user_context
from .constants import PAGINATION
from .exceptions import AuthenticationError, ValidationError
from .utils import parse_date_value, parse_datetime_value, parse_decimal, parse_time_value


class AuthenticatedAPIView:
    """
    Mixin providing standardized authentication and parsing helpers.

    Errors are raised as apps.core.exceptions subclasses and rendered by
    custom_exception_handler.

    Usage:
        class MyView(AuthenticatedAPIView, APIView):
            def get(self, request):
                user = self.get_user(request)  # Raises if not authenticated
                # ... view logic
    """

    def get_user(self, request) -> AuthenticatedUser:
        """
        Get authenticated user or raise 401.

        Raises:
            AuthenticationError if not authenticated
        """
        user = get_user_context(request)
        if not user:
            raise AuthenticationError()
        return user

    def parse_uuid(self, value, field_name: str = "id") -> UUID:
        """
        Parse string to UUID or raise validation error.

        Args:
            value: String value to parse
            field_name: Name of field for error message

        Raises:
            ValidationError if missing or invalid format
        """
        if not value:
            raise ValidationError(f"{field_name} is required")
        try:
            return UUID(str(value))
        except ValueError as err:
            raise ValidationError(f"Invalid {field_name} format") from err

    def parse_uuid_optional(self, value) -> UUID | None:
        """Parse string to UUID, return None if empty or invalid."""
        if not value:
            return None
        try:
            return UUID(str(value))
        except ValueError:
            return None

    def require_datetime(self, value) -> datetime:
        """Parse a timestamp or raise 400 'Invalid date format'."""
        parsed = parse_datetime_value(value)
        if parsed is None:
            raise ValidationError("Invalid date format")
        return parsed

    def require_date(self, value, field_name: str = "date") -> date:
        """Parse a date or raise 400."""
        if not value:
            raise ValidationError(f"{field_name} is required")
        parsed = parse_date_value(value)
        if parsed is None:
            raise ValidationError("Invalid date format")
        return parsed

    def parse_date(self, value) -> date | None:
        """Parse date string, return None if empty or invalid."""
        return parse_date_value(value)

    def parse_time_optional(self, value, field_name: str = "time") -> time | None:
        """Parse a time of day, None if empty, 400 if malformed."""
        if value in (None, ''):
            return None
        parsed = parse_time_value(value)
        if parsed is None:
            raise ValidationError(f"Invalid {field_name} format")
        return parsed

    def parse_decimal_optional(self, value, field_name: str) -> Decimal | None:
        """Parse a number, None if empty, 400 if not numeric."""
        if value in (None, ''):
            return None
        parsed = parse_decimal(value)
        if parsed is None:
            raise ValidationError(f"{field_name} must be a number")
        return parsed

    def parse_limit(self, value) -> int:
        """Page size from a query param, clamped to PAGINATION bounds."""
        try:
            limit = int(value) if value else PAGINATION["default_limit"]
        except ValueError as err:
            raise ValidationError("limit must be a number") from err
        return max(1, min(limit, PAGINATION["max_limit"]))

    def success_response(self, data: dict | None = None, message: str | None = None, status_code: int = 200) -> Response:
        """Build standardized success response."""
        payload: dict = {"success": True}
        if message:
            payload["message"] = message
        if data:
            payload.update(data)
        return Response(payload, status=status_code)
