"""Pytest configuration and shared fixtures."""

import os

import django
from django.test import Client

import pytest

# Configure Django settings for tests
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "notification_engine.settings_test")
django.setup()

from tests.base import make_access_token  # noqa: E402


@pytest.fixture
def api_client():
    """Provide Django test client."""
    return Client()


@pytest.fixture
def client_token():
    return make_access_token(["delivery:client"])


@pytest.fixture
def admin_token():
    return make_access_token(["delivery:admin"])
