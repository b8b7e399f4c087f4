"""CLI commands for InterviewReader session maintenance."""

import argparse
import asyncio
import json
import logging
import sys

from sqlalchemy.orm import Session

from interview_reader.database import SessionLocal
from interview_reader.services.session_cleanup import cleanup_expired_sessions
from interview_reader.services.session_service import session_service


def cleanup_sessions() -> int:
    """Run one cleanup pass now and report how many sessions were deleted."""
    deleted = asyncio.run(cleanup_expired_sessions())
    print(f"Deleted {deleted} expired or inactive sessions.")
    return deleted


def session_stats() -> dict:
    """Print global session statistics as JSON."""
    db: Session = SessionLocal()

    try:
        stats = asyncio.run(session_service.get_global_session_stats(db))
        print(json.dumps(stats, indent=2))
        return stats
    finally:
        db.close()


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    parser = argparse.ArgumentParser(description="InterviewReader CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "cleanup-sessions", help="Delete expired and inactive sessions"
    )
    subparsers.add_parser("session-stats", help="Show global session statistics")

    args = parser.parse_args(argv)

    if args.command == "cleanup-sessions":
        cleanup_sessions()
    elif args.command == "session-stats":
        session_stats()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
