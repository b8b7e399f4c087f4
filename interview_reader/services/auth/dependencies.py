"""FastAPI dependencies for authentication."""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from interview_reader.config import settings
from interview_reader.database import get_db
from interview_reader.exceptions import (
    AccountDeactivatedError,
    CredentialMalformedError,
    NoCredentialError,
    SessionInvalidError,
    UnknownSubjectError,
)
from interview_reader.models.user import User
from interview_reader.services.session_service import session_service
from interview_reader.services.token_service import (
    ACCESS,
    extract_token_from_header,
    token_service,
)


logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


@dataclass(frozen=True)
class TokenInfo:
    access_token: str
    user_id: str
    token_type: str
    issued_at: Optional[int]
    expires_at: Optional[int]


def extract_access_token(request: Request) -> Optional[str]:
    """Access token from the cookie, falling back to the Authorization header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token:
        token = extract_token_from_header(request.headers.get("authorization"))
    return token or None


async def authenticate_request(request: Request, db: Session) -> User:
    """
    Run the full authentication gate for a request.

    On success the user and token metadata are attached to request.state.

    Raises:
        NoCredentialError, CredentialExpiredError, CredentialMalformedError,
        CredentialWrongKindError, UnknownSubjectError, AccountDeactivatedError,
        SessionInvalidError
    """
    access_token = extract_access_token(request)
    if not access_token:
        raise NoCredentialError(
            errors={"auth": "No access token provided in cookies or headers"}
        )

    payload = token_service.verify(access_token, ACCESS)

    try:
        user_id = UUID(str(payload["_id"]))
    except ValueError as e:
        raise CredentialMalformedError(errors={"auth": "Invalid subject"}) from e

    user = db.get(User, user_id)
    if not user:
        raise UnknownSubjectError(
            errors={"auth": "User associated with token does not exist"}
        )
    if not user.is_active:
        raise AccountDeactivatedError(
            errors={"auth": "User account has been deactivated"}
        )

    if settings.session_validation:
        session = await session_service.find_valid_session(db, user.id, access_token)
        if not session:
            raise SessionInvalidError(
                errors={"auth": "Session has expired or is invalid"}
            )
        if settings.update_last_used:
            await session_service.touch(db, session)

    request.state.user = user
    request.state.token_info = TokenInfo(
        access_token=access_token,
        user_id=str(user.id),
        token_type=payload.get("type"),
        issued_at=payload.get("iat"),
        expires_at=payload.get("exp"),
    )
    if settings.environment == "development":
        logger.debug("User authenticated: %s (%s)", user.email, user.id)
    return user


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    """
    Get the currently authenticated user.

    Raises a 401 ApiError subclass naming the exact failure.
    """
    return await authenticate_request(request, db)


async def get_optional_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get the current user if authenticated, None otherwise.

    Performs the same checks as get_current_user but never rejects.
    """
    if not extract_access_token(request):
        return None
    try:
        return await authenticate_request(request, db)
    except Exception as e:
        db.rollback()
        logger.warning(
            "Optional auth failed (continuing): %s", getattr(e, "message", e)
        )
        return None


def get_token_info(request: Request) -> TokenInfo:
    """Token metadata attached by the gate; use after get_current_user."""
    return request.state.token_info
