"""
Database models for InterviewReader.

Import all models here so Alembic can detect them for migrations.
"""

from interview_reader.database import Base
from interview_reader.models.user import PROVIDERS, User
from interview_reader.models.session import Session

__all__ = [
    "Base",
    "PROVIDERS",
    "User",
    "Session",
]
