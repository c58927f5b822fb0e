"""Shared pytest fixtures for AssetDesk tests."""

import datetime

import pytest

from django.conf import settings
from django.utils import timezone

# Plain static storage for tests (no collected manifest)
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

settings.INSTITUTION_EMAIL_DOMAIN = "cut.ac.zw"
settings.ASSET_CODE_PREFIX = "CUT"
settings.OAUTH_RETRY_DELAY = 0


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) and cached dashboard
    aggregates from bleeding across tests.
    """
    from django.core.cache import cache

    cache.clear()


from assets.factories import (  # noqa: E402
    AssetFactory,
    AssetIssueFactory,
    CategoryFactory,
    DepartmentFactory,
    UserFactory,
)

# --- User fixtures ---


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def staff_user(db, password):
    return UserFactory(
        username="staff",
        email="staff@cut.ac.zw",
        password=password,
        first_name="Tendai",
        last_name="Moyo",
        role="staff",
    )


@pytest.fixture
def technician_user(db, password):
    return UserFactory(
        username="tech",
        email="tech@cut.ac.zw",
        password=password,
        first_name="Farai",
        last_name="Chikwanha",
        role="technician",
    )


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@cut.ac.zw",
        password=password,
        first_name="Rudo",
        last_name="Ncube",
        role="admin",
    )


@pytest.fixture
def outsider_user(db, password):
    """Valid credentials, wrong email domain."""
    return UserFactory(
        username="outsider",
        email="outsider@gmail.com",
        password=password,
    )


@pytest.fixture
def staff_client(client, staff_user, password):
    client.login(username=staff_user.username, password=password)
    return client


@pytest.fixture
def technician_client(client, technician_user, password):
    client.login(username=technician_user.username, password=password)
    return client


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


# --- Core model fixtures ---


@pytest.fixture
def department(db):
    return DepartmentFactory(
        name="Information Technology",
        code="ICT",
        description="ICT services",
    )


@pytest.fixture
def category(db):
    return CategoryFactory(
        name="Projector", slug="projector", code_prefix="PROJ"
    )


@pytest.fixture
def laptop_category(db):
    return CategoryFactory(name="Laptop", slug="laptop", code_prefix="LAP")


@pytest.fixture
def asset(category, department, technician_user):
    return AssetFactory(
        asset_code="CUT-PROJ-001",
        name="Epson Projector",
        category=category,
        department=department,
        brand="Epson",
        serial_number="EPS-0001",
        created_by=technician_user,
    )


@pytest.fixture
def issued_asset(laptop_category, department, technician_user, staff_user):
    """An asset with a consistent active issue to the staff user."""
    item = AssetFactory(
        asset_code="CUT-LAP-010",
        name="Dell Latitude",
        category=laptop_category,
        department=department,
        status="issued",
        created_by=technician_user,
    )
    AssetIssueFactory(
        asset=item,
        issued_to=staff_user,
        issued_by=technician_user,
        expected_return_date=timezone.localdate()
        + datetime.timedelta(days=7),
    )
    return item


@pytest.fixture
def active_issue(issued_asset):
    return issued_asset.issues.get(status="active")
