"""
Unit tests for LoginService.

Tests the login orchestration: identity resolution, cap enforcement,
token issuing and session persistence in one flow.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from interview_reader.models import Session as UserSession, User
from interview_reader.services.auth.base import OAuthProfile
from interview_reader.services.login_service import LoginService
from interview_reader.services.session_service import DeviceInfo, SessionService
from interview_reader.services.token_service import ACCESS, REFRESH, token_service
from tests.factories import create_session, create_user


@pytest.fixture
def service() -> LoginService:
    return LoginService(sessions=SessionService(max_sessions_per_user=3))


def google_profile(**overrides) -> OAuthProfile:
    values = {
        "provider": "google",
        "id": "g-1",
        "email": "jane@example.com",
        "name": "Jane Doe",
        "avatar": "https://example.com/jane.png",
    }
    values.update(overrides)
    return OAuthProfile(**values)


class TestLoginOrCreateUser:
    @pytest.mark.asyncio
    async def test_first_login_creates_user_and_session(
        self, db: Session, service: LoginService
    ):
        user, tokens = await service.login_or_create_user(
            db, google_profile(), DeviceInfo("Chrome", "1.2.3.4")
        )

        assert user.google_id == "g-1"
        assert user.active_session_count == 1
        assert token_service.verify(tokens.access_token, ACCESS)["_id"] == str(user.id)
        assert token_service.verify(tokens.refresh_token, REFRESH)["_id"] == str(user.id)

        session = db.query(UserSession).one()
        assert session.refresh_token == tokens.refresh_token
        assert session.provider == "google"
        assert session.user_agent == "Chrome"

    @pytest.mark.asyncio
    async def test_second_provider_links_same_user(
        self, db: Session, service: LoginService
    ):
        """Google then GitHub with the same email: one user, two sessions."""
        first, _ = await service.login_or_create_user(
            db, google_profile(), DeviceInfo()
        )
        second, _ = await service.login_or_create_user(
            db,
            OAuthProfile(
                provider="github", id="42", email="jane@example.com", name="Jane Doe"
            ),
            DeviceInfo(),
        )

        assert second.id == first.id
        assert second.google_id == "g-1"
        assert second.github_id == "42"
        assert second.active_session_count == 2
        assert db.query(User).count() == 1
        assert db.query(UserSession).count() == 2

    @pytest.mark.asyncio
    async def test_login_at_cap_evicts_oldest(self, db: Session, service: LoginService):
        user = create_user(db, email="jane@example.com", google_id="g-1")
        now = datetime.now(timezone.utc)
        oldest = create_session(db, user, last_used=now - timedelta(hours=3))
        create_session(db, user, last_used=now - timedelta(hours=2))
        create_session(db, user, last_used=now - timedelta(hours=1))

        await service.login_or_create_user(db, google_profile(), DeviceInfo())

        db.refresh(oldest)
        assert oldest.is_active is False
        active = db.query(UserSession).filter(UserSession.is_active.is_(True)).count()
        assert active == 3
        assert user.active_session_count == 3

    @pytest.mark.asyncio
    async def test_deactivated_user_may_still_log_in(
        self, db: Session, service: LoginService
    ):
        """Deactivation is enforced by the request gate, not at login."""
        create_user(db, email="jane@example.com", google_id="g-1", is_active=False)

        user, tokens = await service.login_or_create_user(
            db, google_profile(), DeviceInfo()
        )

        assert user.is_active is False
        assert tokens.access_token
