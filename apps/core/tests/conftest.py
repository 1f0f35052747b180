"""
Shares the database setup and client fixtures of tests/conftest.py with the
core app tests, so unmanaged tables exist here too.
"""
from tests.conftest import agent_client, agent_user, api_client, django_db_setup  # noqa: F401
