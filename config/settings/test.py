"""
Django Test Settings for EstateHub Backend

Uses SQLite in-memory database for fast testing.
Unmanaged models are switched to managed in tests/conftest.py so their
tables get created.
"""
from .base import *  # noqa: F401, F403

# =============================================================================
# Debug Mode for Tests
# =============================================================================

DEBUG = False

# =============================================================================
# Database - SQLite in memory
# =============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# =============================================================================
# Speed Optimizations for Tests
# =============================================================================

# Use faster password hasher for tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Disable logging during tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}

# =============================================================================
# Authentication
# =============================================================================

# Same REST_FRAMEWORK as base: JWT auth stays on so anonymous requests get 401.
# Tests authenticate with APIClient.force_authenticate or a signed token.
AUTH_JWT_SECRET = 'test-jwt-secret-key-for-testing-purposes-only'

# =============================================================================
# Application Settings - pinned so tests do not depend on the environment
# =============================================================================

COMMISSION_DEFAULTS = {
    'agent': '2',
    'finders': '1',
    'referral': '0.5',
    'team_leader': '1',
    'administration': '4',
}
REFERRAL_EXTERNAL_GAP_DAYS = 30
REMINDER_SAME_DAY_HOUR = 9

# =============================================================================
# CORS - Allow all for tests
# =============================================================================

CORS_ALLOW_ALL_ORIGINS = True
