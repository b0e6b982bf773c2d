"""Fixtures for API route tests.

The application lifespan is not run; each test overrides get_hotel_session
with a session built around the mocked gateway from the root conftest.
Callers identify themselves with a bearer token; `sign_in` registers a
token for a user and sends it on every request of the test client.
"""

from types import SimpleNamespace
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from hotel_api.dependencies import get_hotel_session
from hotel_api.main import app
from hotel_core.models import AuthenticatedUser, BookingError, ErrorCode
from hotel_core.services.gateway import SessionContext
from hotel_core.services.identity import AuthService


@pytest.fixture
def tokens() -> dict[str, AuthenticatedUser]:
    """Bearer tokens the mocked auth service accepts, and their users."""
    return {}


@pytest.fixture
def auth_service(session, tokens) -> MagicMock:
    async def authenticate(token: str) -> SessionContext:
        if token not in tokens:
            raise BookingError(ErrorCode.AUTH_REQUIRED, details={"reason": "invalid or expired token"})
        return SessionContext(token, tokens[token])

    mock = MagicMock(spec=AuthService)
    mock.session = session
    mock.user = None
    mock.authenticate = AsyncMock(side_effect=authenticate)
    return mock


@pytest.fixture
def hotel(manager, auth_service, session) -> SimpleNamespace:
    return SimpleNamespace(manager=manager, auth=auth_service, session=session)


@pytest.fixture
def client(hotel) -> Any:
    """Test client with the hotel session overridden."""
    app.dependency_overrides[get_hotel_session] = lambda: hotel
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(client, tokens) -> Callable[..., None]:
    """Make the test client call as `user`."""

    def _sign_in(user: AuthenticatedUser, token: str = "tok") -> None:
        tokens[token] = user
        client.headers["Authorization"] = f"Bearer {token}"

    return _sign_in
