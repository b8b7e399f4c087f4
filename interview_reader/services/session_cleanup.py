"""
Periodic cleanup of expired and inactive sessions.

SessionCleanupTask is owned by the application lifespan: it runs one pass
on start, then one pass per interval until stopped.
"""

import asyncio
import logging
import random
import time
from functools import wraps
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from interview_reader.config import settings
from interview_reader.database import SessionLocal
from interview_reader.services.session_service import SessionService, session_service


logger = logging.getLogger(__name__)


class CleanupFailedError(Exception):
    """Session cleanup kept failing after all retries."""


def retry_on_database_error(max_attempts=3, base_delay=1.0):
    """
    Retry decorator for coroutines that may hit transient database errors.

    Args:
        max_attempts: Maximum attempts (default 3)
        base_delay: Base delay in seconds for exponential backoff (default 1.0)
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except SQLAlchemyError as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        delay = base_delay * (2**attempt)
                        jitter = delay * 0.1 * (2 * random.random() - 1)
                        sleep_time = max(delay + jitter, 0)

                        logger.warning(
                            "Session cleanup error on attempt %d/%d, retrying in %.1fs: %s",
                            attempt + 1,
                            max_attempts,
                            sleep_time,
                            e,
                        )
                        await asyncio.sleep(sleep_time)
                    else:
                        logger.error("All %d cleanup attempts failed", max_attempts)

            raise CleanupFailedError(
                f"Session cleanup failed after {max_attempts} attempts"
            ) from last_exception

        return wrapper

    return decorator


def _cleanup_pass(service: SessionService, session_factory: Callable) -> int:
    """One cleanup pass on its own database session. Runs in a worker thread."""
    db = session_factory()
    try:
        return asyncio.run(service.cleanup_expired_sessions(db))
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


async def cleanup_expired_sessions(
    service: SessionService = session_service,
    session_factory: Callable = SessionLocal,
    max_attempts: int = settings.session_cleanup_max_attempts,
    base_delay: float = settings.session_cleanup_base_delay,
) -> int:
    """
    Run one global cleanup pass with retries.

    Returns the number of deleted sessions, or 0 if every attempt failed.
    """

    @retry_on_database_error(max_attempts=max_attempts, base_delay=base_delay)
    async def _run() -> int:
        started = time.monotonic()
        deleted = await asyncio.to_thread(_cleanup_pass, service, session_factory)
        if deleted:
            logger.info(
                "Session cleanup completed: %d sessions deleted in %.0fms",
                deleted,
                (time.monotonic() - started) * 1000,
            )
        return deleted

    try:
        return await _run()
    except CleanupFailedError as e:
        logger.error("%s", e)
        return 0


class SessionCleanupTask:
    """Background loop deleting stale sessions on a fixed interval."""

    def __init__(
        self,
        interval_hours: float = settings.session_cleanup_interval_hours,
        cleanup: Optional[Callable] = None,
    ):
        self.interval_seconds = interval_hours * 3600
        self._cleanup = cleanup or cleanup_expired_sessions
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Session cleanup already running")
            return
        logger.info(
            "Starting periodic session cleanup (every %s hours)",
            self.interval_seconds / 3600,
        )
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session cleanup stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self._cleanup()
            except Exception:
                logger.exception("Periodic session cleanup error")
            await asyncio.sleep(self.interval_seconds)
