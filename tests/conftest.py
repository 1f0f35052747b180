"""
Pytest Configuration for EstateHub Backend Tests

Key Features:
- Enables managed=True for unmanaged models during tests
- Provides fixtures for authenticated users and API clients
- Sets up factory_boy for model factories
"""
import pytest
from django.apps import apps
from rest_framework.test import APIClient

from apps.core.authentication import AuthenticatedUser
from tests.factories import UserFactory


# =============================================================================
# Database Setup - Enable managed=True for unmanaged models
# =============================================================================

@pytest.fixture(scope='session')
def django_db_setup(django_db_blocker):
    """
    Override database setup to enable managed=True for all models.
    This allows Django to create tables for models that normally
    point to existing PostgreSQL tables (managed=False).
    """
    with django_db_blocker.unblock():
        for model in apps.get_models():
            if not model._meta.managed:
                model._meta.managed = True

        # Import after modifying models
        from django.core.management import call_command

        # Create all tables
        call_command('migrate', '--run-syncdb', verbosity=0)


# =============================================================================
# AuthenticatedUser helpers
# =============================================================================

def as_auth_user(user) -> AuthenticatedUser:
    """Request-level user context for a User row."""
    return AuthenticatedUser(id=user.id, email=user.email, name=user.name, role=user.role)


def client_for(user) -> APIClient:
    """API client authenticated as the given User row."""
    client = APIClient()
    client.force_authenticate(user=as_auth_user(user))
    return client


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Basic API client without authentication."""
    return APIClient()


@pytest.fixture
def agent_user(db):
    return UserFactory(name='Agent Smith')


@pytest.fixture
def agent_client(agent_user):
    """API client authenticated as an agent."""
    return client_for(agent_user)


