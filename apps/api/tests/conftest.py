"""
Shared fixtures.

Repositories are patched in each test, so no database is needed.
"""

import os

# Cheap hashes for tests; must be set before settings are loaded
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PYTHON_ENV", "test")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from campuscore.core.database import get_db  # noqa: E402
from campuscore.core.rate_limit import reset_memory_store  # noqa: E402
from campuscore.main import app  # noqa: E402
from campuscore.modules.users.models import UserRole  # noqa: E402
from tests.factories import make_school, make_tenant, make_user  # noqa: E402


@pytest.fixture(autouse=True)
def clear_rate_limits():
    """Rate limit counters must not leak between tests."""
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.scalar = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def tenant():
    return make_tenant()


@pytest.fixture
def other_tenant():
    return make_tenant(name="Hill Top Academy", code="hill-top-academy", slug="hill-top-academy")


@pytest.fixture
def school(tenant):
    return make_school(tenant.id)


@pytest.fixture
def school_admin(tenant):
    return make_user(tenant.id, email="admin@gvs.example.com", role=UserRole.SCHOOL_ADMIN)


@pytest.fixture
def teacher(tenant):
    return make_user(tenant.id)


@pytest.fixture
def super_admin():
    return make_user(None, email="root@campuscore.example.com", role=UserRole.SUPER_ADMIN)


@pytest_asyncio.fixture
async def client(mock_db):
    """HTTP client against the app with the session dependency overridden."""

    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
