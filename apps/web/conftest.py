"""
Pytest configuration for Django app tests.
"""

from django.contrib.auth import get_user_model
from django.test import Client as DjangoClient

import pytest

from apps.web.core.models import User
from apps.web.pos.services.location import location_resolver


@pytest.fixture(autouse=True)
def reset_location_cache():
    """The location resolver is process-wide; start every test cold."""
    location_resolver.reset()
    yield
    location_resolver.reset()


@pytest.fixture
def staff_user(db) -> User:
    """Create an active staff user."""
    return get_user_model().objects.create_user(
        username="staff",
        email="staff@example.com",
        password="testpass123",
        first_name="Sam",
        last_name="Staff",
        is_staff=True,
    )


@pytest.fixture
def user(db) -> User:
    """Create a regular (non-staff) user."""
    return get_user_model().objects.create_user(
        username="testuser",
        email="testuser@example.com",
        password="testpass123",
    )


@pytest.fixture
def api_client() -> DjangoClient:
    """Anonymous Django test client for API requests."""
    return DjangoClient()


@pytest.fixture
def staff_client(staff_user: User) -> DjangoClient:
    """Django test client logged in as staff."""
    client = DjangoClient()
    client.force_login(staff_user)
    return client
