"""
Test configuration and fixtures for InterviewReader auth.

- Function-scoped in-memory SQLite engine (or TEST_DATABASE_URL if set)
- TestClient with database dependency override
- Authenticated client fixtures backed by real signed tokens
- Fake OAuth provider APIs served through httpx.MockTransport
"""

import os

# Settings and service singletons are built at import time
os.environ.update(
    {
        "ENVIRONMENT": "test",
        "DATABASE_URL": "sqlite://",
        "CLIENT_URL": "http://localhost:5173",
        "ACCESS_TOKEN_SECRET": "test-access-secret-0123456789abcdef0123",
        "REFRESH_TOKEN_SECRET": "test-refresh-secret-0123456789abcdef012",
        "GOOGLE_CLIENT_ID": "google-client-id",
        "GOOGLE_CLIENT_SECRET": "google-client-secret",
        "GOOGLE_REDIRECT_URI": "http://testserver/auth/google/callback",
        "GITHUB_CLIENT_ID": "github-client-id",
        "GITHUB_CLIENT_SECRET": "github-client-secret",
        "GITHUB_REDIRECT_URI": "http://testserver/auth/github/callback",
        "LINKEDIN_CLIENT_ID": "linkedin-client-id",
        "LINKEDIN_CLIENT_SECRET": "linkedin-client-secret",
        "LINKEDIN_REDIRECT_URI": "http://testserver/auth/linkedin/callback",
        "SESSION_CLEANUP_ENABLED": "false",
    }
)

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from interview_reader.api.auth import oauth_provider_dependency
from interview_reader.database import Base, get_db
from interview_reader.main import app
from interview_reader.models import User, Session as UserSession
from tests.factories import create_session, create_user
from tests.fixtures.oauth_mocks import FakeProviderAPI


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_engine():
    """
    Create a fresh database per test.

    Uses TEST_DATABASE_URL when set (e.g. a PostgreSQL instance in CI),
    otherwise an in-memory SQLite database shared across threads so the
    TestClient's worker thread sees the same data.
    """
    database_url = os.environ.get("TEST_DATABASE_URL")
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    """Database session for a single test."""
    TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False)
    session = TestingSessionLocal()

    yield session

    session.close()


# =============================================================================
# TestClient Fixtures
# =============================================================================


def _override_db(db: Session):
    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close - managed by db fixture

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """TestClient with database dependency override."""
    _override_db(db)

    with TestClient(app) as test_client:
        # Set default Referer so CSRF Origin middleware allows requests
        test_client.headers["referer"] = "http://testserver/"
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Authentication Fixtures
# =============================================================================


@pytest.fixture
def test_user(db: Session) -> User:
    """Create a test user linked to Google."""
    return create_user(
        db, email="testuser@example.com", name="Test User", google_id="google-123"
    )


@pytest.fixture
def test_session(db: Session, test_user: User) -> UserSession:
    """Create an active session with a real token pair for the test user."""
    return create_session(db, test_user)


@pytest.fixture
def auth_client(
    db: Session, test_session: UserSession
) -> Generator[TestClient, None, None]:
    """
    Authenticated TestClient for the test user.

    Creates a separate TestClient instance to avoid cookie conflicts.
    """
    _override_db(db)

    with TestClient(app) as test_client:
        test_client.cookies.set("accessToken", test_session.access_token)
        test_client.cookies.set("refreshToken", test_session.refresh_token)
        # Set default Referer so CSRF Origin middleware allows requests
        test_client.headers["referer"] = "http://testserver/"
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def fake_provider_api(client: TestClient) -> FakeProviderAPI:
    """
    Fake Google/GitHub/LinkedIn HTTP APIs wired into the OAuth routes.

    Configure profiles and failures per test by setting attributes.
    """
    api = FakeProviderAPI()

    def override_provider(provider: str):
        return api.provider(provider)

    app.dependency_overrides[oauth_provider_dependency] = override_provider
    return api


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "security: marks tests as security tests (deselect with '-m not security')",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m not slow')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
