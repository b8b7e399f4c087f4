"""
Unit tests for CLI commands.

Tests the command-line interface for session maintenance.
"""
import json
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.orm import Session

from interview_reader.cli import cleanup_sessions, main, session_stats
from tests.factories import create_session, create_user


class TestCleanupSessions:
    def test_reports_deleted_count(self):
        with patch(
            "interview_reader.cli.cleanup_expired_sessions",
            AsyncMock(return_value=4),
        ), patch("builtins.print") as mock_print:
            deleted = cleanup_sessions()

        assert deleted == 4
        mock_print.assert_called_with("Deleted 4 expired or inactive sessions.")


class TestSessionStats:
    def test_prints_global_stats(self, db: Session):
        user = create_user(db)
        create_session(db, user)
        create_session(db, user, expires_in=timedelta(days=-1), count=False)

        with patch("interview_reader.cli.SessionLocal", return_value=db), patch(
            "builtins.print"
        ) as mock_print:
            stats = session_stats()

        assert stats["total_sessions"] == 2
        assert stats["active_sessions"] == 1
        printed = json.loads(mock_print.call_args[0][0])
        assert printed["expired_sessions"] == 1


class TestMain:
    def test_dispatches_cleanup(self):
        with patch("interview_reader.cli.cleanup_sessions") as mock_cleanup:
            main(["cleanup-sessions"])

        mock_cleanup.assert_called_once()

    def test_dispatches_stats(self):
        with patch("interview_reader.cli.session_stats") as mock_stats:
            main(["session-stats"])

        mock_stats.assert_called_once()

    def test_no_command_exits(self):
        with patch("builtins.print"), pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
