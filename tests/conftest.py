"""Shared fixtures: an in-process HTTP client and an authenticated user."""

from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vidshare.api.v1.dependencies import get_current_user
from vidshare.main import app
from vidshare.models.user import User


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_user() -> User:
    return User(
        id=uuid4(),
        username="alice",
        email="alice@example.com",
        fullName="Alice Example",
    )


@pytest.fixture
def other_user() -> User:
    return User(
        id=uuid4(),
        username="bob",
        email="bob@example.com",
        fullName="Bob Example",
    )


@pytest.fixture
def auth_user(sample_user: User):
    """Authenticate every request in the test as ``sample_user``."""

    app.dependency_overrides[get_current_user] = lambda: sample_user
    yield sample_user
    app.dependency_overrides.pop(get_current_user, None)
