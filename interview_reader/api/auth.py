"""Authentication routes: OAuth login per provider and logout variants."""

import logging
from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from interview_reader.config import settings
from interview_reader.database import get_db
from interview_reader.exceptions import ApiError, redirect_error_code
from interview_reader.models.user import User
from interview_reader.services.auth import OAuthProvider, Provider, get_oauth_provider
from interview_reader.services.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_current_user,
)
from interview_reader.services.login_service import login_service
from interview_reader.services.session_service import DeviceInfo, session_service
from interview_reader.services.token_service import (
    TokenPair,
    subject_from_access_token,
    token_service,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# Helpers
# =============================================================================


def oauth_provider_dependency(provider: Provider) -> OAuthProvider:
    return get_oauth_provider(provider)


def device_info_from(request: Request) -> DeviceInfo:
    return DeviceInfo(
        user_agent=request.headers.get("user-agent") or "Unknown",
        ip_address=request.client.host if request.client else "Unknown",
    )


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": settings.cookie_samesite,
    }


def set_auth_cookies(response, tokens: TokenPair) -> None:
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=tokens.access_token,
        max_age=settings.access_token_max_age,
        **_cookie_options(),
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=tokens.refresh_token,
        max_age=settings.refresh_token_max_age,
        **_cookie_options(),
    )


def clear_auth_cookies(response) -> None:
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())


def success_redirect(provider: str) -> RedirectResponse:
    query = urlencode({"login": "success", "provider": provider})
    return RedirectResponse(
        url=f"{settings.client_url.rstrip('/')}/dashboard?{query}", status_code=302
    )


def error_redirect(error_code: str, provider: str) -> RedirectResponse:
    query = urlencode({"error": error_code, "provider": provider})
    return RedirectResponse(url=f"{settings.client_url}?{query}", status_code=302)


def _user_id_or_none(value) -> Optional[UUID]:
    try:
        return UUID(str(value)) if value else None
    except ValueError:
        return None


# =============================================================================
# OAuth
# =============================================================================


@router.get("/{provider}")
async def begin_auth(
    provider: Provider,
    oauth: OAuthProvider = Depends(oauth_provider_dependency),
):
    """Redirect the browser to the provider's consent screen."""
    return RedirectResponse(url=oauth.authorization_url(), status_code=302)


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: Provider,
    request: Request,
    code: Optional[str] = Query(None),
    oauth: OAuthProvider = Depends(oauth_provider_dependency),
    db: Session = Depends(get_db),
):
    """
    Finish the OAuth flow.

    Any failure becomes a redirect to the client with an error code; the
    full error is only logged.
    """
    try:
        profile = await oauth.fetch_profile(code)
        _, tokens = await login_service.login_or_create_user(
            db, profile, device_info_from(request)
        )
    except ApiError as e:
        db.rollback()
        logger.error(
            "%s OAuth error: %s %s (%s)",
            provider.value,
            type(e).__name__,
            e.message,
            e.errors,
        )
        return error_redirect(redirect_error_code(e), provider.value)
    except Exception as e:
        db.rollback()
        logger.exception("%s OAuth error", provider.value)
        return error_redirect(redirect_error_code(e), provider.value)

    response = success_redirect(provider.value)
    set_auth_cookies(response, tokens)
    return response


# =============================================================================
# Logout
# =============================================================================


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    """
    Log out the current device.

    Always 200 and always clears the auth cookies, even with no session,
    no cookies, or a failing database.
    """
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    access_token = request.cookies.get(ACCESS_COOKIE)

    try:
        user_id = _user_id_or_none(
            subject_from_access_token(token_service, access_token)
        )
        result = await session_service.logout_current(db, refresh_token, user_id)
        response = JSONResponse(
            {
                "message": "Logged out successfully",
                "sessionsDeleted": result.sessions_deleted,
                "cleanupPerformed": result.cleanup_performed,
            }
        )
    except Exception as e:
        db.rollback()
        logger.warning("Logout cleanup error: %s", e)
        response = JSONResponse(
            {
                "message": "Logged out (with cleanup errors)",
                "sessionsDeleted": 0,
                "warning": "Some sessions could not be deleted, but cookies cleared",
            }
        )

    clear_auth_cookies(response)
    return response


@router.post("/logout-all")
async def logout_all_devices(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete every session of the current user on every device."""
    try:
        deleted = await session_service.logout_all(db, user)
        response = JSONResponse(
            {"message": "Logged out from all devices", "sessionsDeleted": deleted}
        )
    except Exception as e:
        db.rollback()
        logger.warning("Logout-all cleanup error for user %s: %s", user.id, e)
        response = JSONResponse(
            {
                "message": "Logged out (with cleanup errors)",
                "sessionsDeleted": 0,
                "warning": "Some sessions could not be deleted, but cookies cleared",
            }
        )

    clear_auth_cookies(response)
    return response
