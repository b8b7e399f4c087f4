"""
Session lifecycle management.

Sessions move Active -> Inactive (targeted logout or cap enforcement) and
are hard-deleted by cleanup once inactive or expired. No transition ever
returns a session to Active.

The user's active_session_count is a cache of the number of active rows.
Every write here that touches both the rows and the counter commits them
together; rows remain the source of truth.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session as DBSession

from interview_reader.config import settings
from interview_reader.exceptions import NotFoundError
from interview_reader.models.session import Session
from interview_reader.models.user import User
from interview_reader.services.token_service import TokenPair


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    user_agent: str = "Unknown"
    ip_address: str = "Unknown"


@dataclass(frozen=True)
class LogoutResult:
    sessions_deleted: int
    cleanup_performed: bool


class SessionService:
    """Creates, caps, invalidates and cleans up user sessions."""

    def __init__(
        self,
        max_sessions_per_user: int = 3,
        session_ttl: timedelta = timedelta(days=10),
        cleanup_on_login: bool = True,
    ):
        self.max_sessions_per_user = max_sessions_per_user
        self.session_ttl = session_ttl
        self.cleanup_on_login = cleanup_on_login

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    # =========================================================================
    # Queries
    # =========================================================================

    def _active_query(self, db: DBSession, user_id: UUID):
        return db.query(Session).filter(
            Session.user_id == user_id,
            Session.is_active.is_(True),
            Session.expires_at > self._now(),
        )

    async def get_active_sessions(self, db: DBSession, user_id: UUID) -> list[Session]:
        """Active, unexpired sessions for a user, most recently used first."""
        return (
            self._active_query(db, user_id)
            .order_by(Session.last_used.desc(), Session.id.desc())
            .all()
        )

    async def find_valid_session(
        self, db: DBSession, user_id: UUID, access_token: str
    ) -> Optional[Session]:
        return (
            self._active_query(db, user_id)
            .filter(Session.access_token == access_token)
            .first()
        )

    async def get_user_session_stats(self, db: DBSession, user_id: UUID) -> dict:
        active = self._active_query(db, user_id).count()
        total = db.query(Session).filter(Session.user_id == user_id).count()
        rows = (
            db.query(Session.provider, func.count(Session.id))
            .filter(Session.user_id == user_id)
            .group_by(Session.provider)
            .order_by(func.count(Session.id).desc())
            .all()
        )
        return {
            "active_sessions": active,
            "total_sessions": total,
            "provider_breakdown": {provider: count for provider, count in rows},
        }

    async def get_global_session_stats(self, db: DBSession) -> dict:
        now = self._now()
        total = db.query(Session).count()
        active = (
            db.query(Session)
            .filter(Session.is_active.is_(True), Session.expires_at > now)
            .count()
        )
        expired = db.query(Session).filter(Session.expires_at < now).count()
        inactive = db.query(Session).filter(Session.is_active.is_(False)).count()
        last_day = (
            db.query(Session)
            .filter(Session.created_at >= now - timedelta(days=1))
            .count()
        )
        last_week = (
            db.query(Session)
            .filter(Session.created_at >= now - timedelta(days=7))
            .count()
        )
        by_provider = (
            db.query(Session.provider, func.count(Session.id))
            .filter(Session.is_active.is_(True), Session.expires_at > now)
            .group_by(Session.provider)
            .all()
        )
        return {
            "total_sessions": total,
            "active_sessions": active,
            "expired_sessions": expired,
            "inactive_sessions": inactive,
            "recent_sessions": {"last_24_hours": last_day, "last_week": last_week},
            "by_provider": {provider: count for provider, count in by_provider},
            "generated_at": now.isoformat(),
        }

    # =========================================================================
    # Cleanup and cap enforcement
    # =========================================================================

    async def cleanup_expired_sessions(
        self, db: DBSession, user_id: Optional[UUID] = None
    ) -> int:
        """Hard-delete sessions that are expired or inactive, optionally for one user."""
        query = db.query(Session).filter(
            or_(Session.expires_at < self._now(), Session.is_active.is_(False))
        )
        if user_id is not None:
            query = query.filter(Session.user_id == user_id)
        deleted = query.delete(synchronize_session=False)
        db.commit()
        if deleted:
            logger.info("Cleaned up %d expired sessions", deleted)
        return deleted

    async def enforce_session_cap(self, db: DBSession, user: User) -> int:
        """
        Make room for one more session under the per-user cap.

        If the user already has max_sessions_per_user active sessions or more,
        everything but the (cap - 1) most recently used is deactivated.
        Returns the number of sessions deactivated.
        """
        sessions = await self.get_active_sessions(db, user.id)
        keep = max(self.max_sessions_per_user - 1, 0)
        if len(sessions) < self.max_sessions_per_user:
            return 0

        to_deactivate = sessions[keep:]
        for session in to_deactivate:
            session.is_active = False
        user.decrement_session_count(len(to_deactivate))
        db.commit()

        logger.info(
            "Deactivated %d old sessions for user %s", len(to_deactivate), user.id
        )
        return len(to_deactivate)

    # =========================================================================
    # Creation
    # =========================================================================

    async def prepare_for_login(self, db: DBSession, user: User) -> None:
        """Run cleanup and cap enforcement ahead of inserting a new session."""
        if self.cleanup_on_login:
            await self.cleanup_expired_sessions(db)
        await self.enforce_session_cap(db, user)

    async def create_session(
        self,
        db: DBSession,
        user: User,
        tokens: TokenPair,
        provider: str,
        device_info: Optional[DeviceInfo] = None,
    ) -> Session:
        """
        Persist a new active session and count it on the user.

        The session row and the user's login metadata are committed together.
        """
        device_info = device_info or DeviceInfo()
        now = self._now()
        session = Session(
            user_id=user.id,
            refresh_token=tokens.refresh_token,
            access_token=tokens.access_token,
            provider=provider,
            user_agent=(device_info.user_agent or "Unknown")[:512],
            ip_address=(device_info.ip_address or "Unknown")[:45],
            is_active=True,
            last_used=now,
            expires_at=now + self.session_ttl,
        )
        db.add(session)
        user.record_login()
        db.commit()
        db.refresh(session)
        return session

    async def touch(self, db: DBSession, session: Session) -> None:
        session.last_used = self._now()
        db.commit()

    # =========================================================================
    # Logout variants
    # =========================================================================

    async def logout_current(
        self,
        db: DBSession,
        refresh_token: Optional[str],
        user_id: Optional[UUID] = None,
    ) -> LogoutResult:
        """
        Delete the session holding this refresh token and purge stale sessions.

        user_id (from the access token, when it still verifies) identifies whose
        stale sessions to purge when no active session matched.
        """
        deleted = 0
        owner_id = user_id

        if refresh_token:
            session = (
                db.query(Session)
                .filter(
                    Session.refresh_token == refresh_token,
                    Session.is_active.is_(True),
                )
                .first()
            )
            if session:
                owner_id = session.user_id
                owner = db.get(User, session.user_id)
                db.delete(session)
                if owner:
                    owner.decrement_session_count()
                db.commit()
                deleted = 1

        if owner_id is not None:
            await self.cleanup_expired_sessions(db, user_id=owner_id)

        return LogoutResult(
            sessions_deleted=deleted, cleanup_performed=owner_id is not None
        )

    async def logout_others(
        self, db: DBSession, user: User, current_access_token: str
    ) -> int:
        """
        Deactivate every active session except the caller's.

        The counter is reset to exactly 1 (the surviving session).
        """
        now = self._now()
        invalidated = (
            db.query(Session)
            .filter(
                Session.user_id == user.id,
                Session.is_active.is_(True),
                Session.access_token != current_access_token,
            )
            .update(
                {Session.is_active: False, Session.logged_out_at: now},
                synchronize_session=False,
            )
        )
        user.active_session_count = 1
        db.commit()

        logger.info("Invalidated %d other sessions for user %s", invalidated, user.id)
        return invalidated

    async def logout_all(self, db: DBSession, user: User) -> int:
        """Hard-delete every session for the user and reset the counter to 0."""
        deleted = (
            db.query(Session)
            .filter(Session.user_id == user.id)
            .delete(synchronize_session=False)
        )
        user.active_session_count = 0
        db.commit()

        logger.info("Deleted all %d sessions for user %s", deleted, user.id)
        return deleted

    async def invalidate_session(
        self, db: DBSession, user: User, session_id: int
    ) -> Session:
        """Deactivate one of the user's own sessions."""
        session = (
            db.query(Session)
            .filter(Session.id == session_id, Session.user_id == user.id)
            .first()
        )
        if not session:
            raise NotFoundError("Session not found")

        if session.is_active:
            session.is_active = False
            session.logged_out_at = self._now()
            user.decrement_session_count()
            db.commit()
            db.refresh(session)
        return session


# Singleton instance
session_service = SessionService(
    max_sessions_per_user=settings.max_sessions_per_user,
    session_ttl=timedelta(days=settings.refresh_token_expire_days),
)
