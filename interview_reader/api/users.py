"""API endpoints for the signed-in user's profile and sessions."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from interview_reader.api.schemas import (
    ApiResponse,
    SessionStats,
    SessionSummary,
    UserProfile,
)
from interview_reader.database import get_db
from interview_reader.models.user import User
from interview_reader.services.auth.dependencies import (
    TokenInfo,
    get_current_user,
    get_token_info,
)
from interview_reader.services.session_service import session_service

router = APIRouter(prefix="/api/v1/user", tags=["user"])


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return ApiResponse.build(
        200,
        "User profile fetched successfully",
        UserProfile.model_validate(user).dump(),
    )


@router.post("/logout-all-others")
async def logout_all_other_devices(
    user: User = Depends(get_current_user),
    token_info: TokenInfo = Depends(get_token_info),
    db: Session = Depends(get_db),
):
    """Invalidate every session except the one making this request."""
    invalidated = await session_service.logout_others(
        db, user, token_info.access_token
    )
    return ApiResponse.build(
        200,
        "Logged out from all other devices successfully",
        {"invalidatedSessions": invalidated, "currentSessionPreserved": True},
    )


@router.get("/sessions")
async def list_sessions(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    sessions = await session_service.get_active_sessions(db, user.id)
    return ApiResponse.build(
        200,
        "Active sessions fetched successfully",
        [SessionSummary.model_validate(s).dump() for s in sessions],
    )


@router.get("/sessions/stats")
async def session_stats(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    stats = await session_service.get_user_session_stats(db, user.id)
    return ApiResponse.build(
        200,
        "Session statistics fetched successfully",
        SessionStats(**stats).dump(),
    )


@router.delete("/sessions/{session_id}")
async def invalidate_session(
    session_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sign out one specific device. 404 if the session is not the caller's."""
    session = await session_service.invalidate_session(db, user, session_id)
    return ApiResponse.build(
        200,
        "Session invalidated successfully",
        {
            "sessionId": session.id,
            "invalidatedAt": session.logged_out_at.isoformat()
            if session.logged_out_at
            else None,
        },
    )
