"""
Unit tests for periodic session cleanup.

Tests the retry wrapper around the cleanup pass and the background task
start/stop lifecycle.
"""
import asyncio
import threading
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from interview_reader.models import Session as UserSession
from interview_reader.services.session_cleanup import (
    CleanupFailedError,
    SessionCleanupTask,
    cleanup_expired_sessions,
    retry_on_database_error,
)
from interview_reader.services.session_service import SessionService
from tests.factories import create_session, create_user


def db_error() -> OperationalError:
    return OperationalError("DELETE FROM sessions", {}, Exception("connection lost"))


class TestRetryOnDatabaseError:
    """Tests for the retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        calls = []

        @retry_on_database_error(max_attempts=3, base_delay=0)
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise db_error()
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        calls = []

        @retry_on_database_error(max_attempts=2, base_delay=0)
        async def broken():
            calls.append(1)
            raise db_error()

        with pytest.raises(CleanupFailedError):
            await broken()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        calls = []

        @retry_on_database_error(max_attempts=3, base_delay=0)
        async def buggy():
            calls.append(1)
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await buggy()
        assert len(calls) == 1


class TestCleanupExpiredSessions:
    """Tests for a single global cleanup pass."""

    @pytest.mark.asyncio
    async def test_deletes_stale_sessions(self, db: Session):
        user = create_user(db)
        create_session(db, user)
        create_session(db, user, is_active=False)
        create_session(db, user, expires_in=timedelta(days=-1), count=False)
        factory = MagicMock(return_value=db)

        deleted = await cleanup_expired_sessions(
            service=SessionService(), session_factory=factory, base_delay=0
        )

        assert deleted == 2
        assert db.query(UserSession).count() == 1

    @pytest.mark.asyncio
    async def test_returns_zero_after_exhausting_retries(self):
        service = MagicMock()
        service.cleanup_expired_sessions = AsyncMock(side_effect=db_error())
        db = MagicMock()

        deleted = await cleanup_expired_sessions(
            service=service,
            session_factory=MagicMock(return_value=db),
            max_attempts=3,
            base_delay=0,
        )

        assert deleted == 0
        assert service.cleanup_expired_sessions.await_count == 3
        assert db.rollback.call_count == 3
        assert db.close.call_count == 3

    @pytest.mark.asyncio
    async def test_runs_off_the_event_loop_thread(self):
        loop_thread = threading.get_ident()
        seen = []

        async def record(db):
            seen.append(threading.get_ident())
            return 0

        service = MagicMock()
        service.cleanup_expired_sessions = record
        db = MagicMock()

        deleted = await cleanup_expired_sessions(
            service=service, session_factory=MagicMock(return_value=db), base_delay=0
        )

        assert deleted == 0
        assert seen and seen[0] != loop_thread
        db.close.assert_called_once()


class TestSessionCleanupTask:
    """Tests for the background cleanup task."""

    @pytest.mark.asyncio
    async def test_runs_immediately_on_start(self):
        ran = asyncio.Event()

        async def cleanup():
            ran.set()
            return 0

        task = SessionCleanupTask(interval_hours=1, cleanup=cleanup)
        task.start()

        await asyncio.wait_for(ran.wait(), timeout=1)
        assert task.running is True

        await task.stop()
        assert task.running is False

    @pytest.mark.asyncio
    async def test_repeats_on_interval(self):
        calls = []

        async def cleanup():
            calls.append(1)
            return 0

        task = SessionCleanupTask(interval_hours=0.01 / 3600, cleanup=cleanup)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_loop_survives_errors(self):
        calls = []

        async def cleanup():
            calls.append(1)
            raise RuntimeError("boom")

        task = SessionCleanupTask(interval_hours=0.01 / 3600, cleanup=cleanup)
        task.start()
        await asyncio.sleep(0.1)

        assert task.running is True
        await task.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self):
        cleanup = AsyncMock(return_value=0)
        task = SessionCleanupTask(interval_hours=1, cleanup=cleanup)

        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        task = SessionCleanupTask(interval_hours=1, cleanup=AsyncMock())

        await task.stop()

        assert task.running is False
