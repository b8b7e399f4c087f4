"""
OAuth login orchestration.

Resolves the provider identity to a user, makes room under the session
cap, mints a token pair and persists the new session.
"""

import logging

from sqlalchemy.orm import Session as DBSession

from interview_reader.models.user import User
from interview_reader.services.auth.base import OAuthProfile
from interview_reader.services.identity_service import IdentityService, identity_service
from interview_reader.services.session_service import (
    DeviceInfo,
    SessionService,
    session_service,
)
from interview_reader.services.token_service import (
    TokenPair,
    TokenService,
    token_service,
)


logger = logging.getLogger(__name__)


class LoginService:
    def __init__(
        self,
        identities: IdentityService = identity_service,
        sessions: SessionService = session_service,
        tokens: TokenService = token_service,
    ):
        self.identities = identities
        self.sessions = sessions
        self.tokens = tokens

    async def login_or_create_user(
        self, db: DBSession, profile: OAuthProfile, device_info: DeviceInfo
    ) -> tuple[User, TokenPair]:
        """
        Log in (creating or linking the user if needed) and open a session.

        Raises:
            InvalidInputError, DuplicateIdentityError, ValidationFailureError
        """
        logger.info(
            "Starting %s login for provider id %s", profile.provider, profile.id
        )
        user = await self.identities.resolve(
            db,
            provider=profile.provider,
            provider_id=profile.id,
            email=profile.email,
            name=profile.name,
            avatar=profile.avatar,
        )

        await self.sessions.prepare_for_login(db, user)
        tokens = self.tokens.issue_pair(user.id)
        await self.sessions.create_session(
            db, user, tokens, profile.provider, device_info
        )

        logger.info("%s login successful for user %s", profile.provider, user.id)
        return user, tokens


# Singleton instance
login_service = LoginService()
