"""Pytest configuration and fixtures."""

import os
import time
from collections import defaultdict
from collections.abc import Callable, Generator
from contextlib import ExitStack
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests"
TEST_USER_ID = "550e8400-e29b-41d4-a716-446655440000"

# Modules that import get_supabase_client directly
SUPABASE_CLIENT_TARGETS = (
    "src.core.supabase",
    "src.services.profile_service",
    "src.services.like_service",
    "src.services.match_service",
    "src.services.feed_service",
    "src.services.message_service",
)


def create_test_token(
    sub: str = TEST_USER_ID,
    email: str | None = "student@iiti.ac.in",
    exp_offset: int = 3600,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """Create a Supabase-style access token signed with the test secret."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "email": email,
        "role": "authenticated",
        "exp": now + exp_offset,
        "iat": now,
        "aud": "authenticated",
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def auth_settings() -> Generator[MagicMock, None, None]:
    """Make token verification use the HS256 test secret."""
    with patch("src.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.supabase_signing_key_jwk = ""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        mock_settings.return_value.jwt_audience = "authenticated"
        yield mock_settings


@pytest.fixture
def make_token(auth_settings: MagicMock) -> Callable[..., str]:
    """Provide a factory for valid access tokens."""
    return create_test_token


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> dict[str, str]:
    """Authorization headers for TEST_USER_ID."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def supabase_tables() -> defaultdict[str, MagicMock]:
    """One mock per table name, so each table's query chain is configured separately."""
    return defaultdict(MagicMock)


@pytest.fixture
def mock_supabase_client(
    supabase_tables: defaultdict[str, MagicMock],
) -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client shared by every service.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    mock_client.table.side_effect = lambda name: supabase_tables[name]

    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(f"{target}.get_supabase_client", return_value=mock_client))
        yield mock_client


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


def store_response(data: Any) -> MagicMock:
    """Build a mock PostgREST response carrying ``data``."""
    response = MagicMock()
    response.data = data
    return response


@pytest.fixture
def response_with() -> Callable[[Any], MagicMock]:
    """Provide the mock response factory."""
    return store_response
