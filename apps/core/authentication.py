"""
JWT Authentication for Django REST Framework

Validates bearer tokens signed with AUTH_JWT_SECRET and attaches user
context to requests. Token issuance lives outside this service.
"""
import logging
from dataclasses import dataclass
from uuid import UUID

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import authentication, exceptions

from .roles import is_admin, normalize_role

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    """
    Represents an authenticated CRM user.

    This is NOT a Django User model - it's a lightweight container
    for user context derived from the JWT and users table. The role is
    stored in canonical form and does not change for the request.
    """
    id: UUID
    email: str
    name: str
    role: str
    is_active: bool = True

    def __post_init__(self):
        self.role = normalize_role(self.role)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_administrator(self) -> bool:
        return is_admin(self.role)


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Authenticates requests using HS256 JWTs.

    Flow:
    1. Extract Bearer token from Authorization header
    2. Decode and validate JWT using AUTH_JWT_SECRET
    3. Look up the active user by id (sub claim)
    4. Return AuthenticatedUser with role context
    """

    def authenticate(self, request):
        """
        Authenticate the request and return (user, token) or None.

        Raises:
            AuthenticationFailed: If credentials are invalid
        """
        auth_header = request.META.get('HTTP_AUTHORIZATION', '')

        if not auth_header.startswith('Bearer '):
            return None

        token = auth_header[7:]
        if not token:
            return None

        payload = self._decode_jwt(token)
        if not payload:
            raise exceptions.AuthenticationFailed('Invalid or expired token')

        user = self._get_user_from_payload(payload)
        if not user:
            raise exceptions.AuthenticationFailed('User not found')

        return (user, token)

    def authenticate_header(self, request):
        return 'Bearer realm="api"'

    def _decode_jwt(self, token: str) -> dict | None:
        jwt_secret = getattr(settings, 'AUTH_JWT_SECRET', None)

        if not jwt_secret:
            logger.error('AUTH_JWT_SECRET not configured')
            return None

        try:
            return jwt.decode(
                token,
                jwt_secret,
                algorithms=['HS256'],
                options={'verify_exp': True, 'require': ['sub']},
            )
        except jwt.ExpiredSignatureError:
            logger.debug('JWT has expired')
            return None
        except jwt.InvalidTokenError as e:
            logger.debug(f'JWT validation failed: {e}')
            return None

    def _get_user_from_payload(self, payload: dict) -> AuthenticatedUser | None:
        """
        Look up the active user named by the sub claim.

        Returns:
            AuthenticatedUser if found, None otherwise
        """
        from .models import User

        user_id = payload.get('sub')
        try:
            row = User.objects.filter(id=user_id, is_active=True).first()
        except (DatabaseError, DjangoValidationError, ValueError) as e:
            logger.error(f'Error looking up user {user_id}: {e}')
            return None

        if not row:
            logger.warning(f'No active user found for id: {user_id}')
            return None

        return AuthenticatedUser(
            id=row.id,
            email=row.email or '',
            name=row.name or '',
            role=row.role,
            is_active=row.is_active,
        )


def get_user_context(request) -> AuthenticatedUser | None:
    """
    Utility function to get authenticated user from request.

    Args:
        request: Django request object

    Returns:
        AuthenticatedUser if authenticated, None otherwise
    """
    user = getattr(request, 'user', None)
    if isinstance(user, AuthenticatedUser):
        return user
    return None
