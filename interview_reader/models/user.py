import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Integer,
    JSON,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship, validates

from interview_reader.database import Base, UTCDateTime
from interview_reader.exceptions import ValidationFailureError


PROVIDERS = ("google", "github", "linkedin")

EMAIL_PATTERN = re.compile(r"^\w+([.+-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$")
AVATAR_PATTERN = re.compile(r"^https?://.+")

MAX_SKILLS = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Unified user identity, linked to zero or more OAuth providers."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "active_session_count >= 0", name="ck_users_active_session_count"
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    avatar = Column(String(1024), nullable=False, default="")

    # One slot per supported provider
    google_id = Column(String(255), unique=True, index=True, nullable=True)
    github_id = Column(String(255), unique=True, index=True, nullable=True)
    linkedin_id = Column(String(255), unique=True, index=True, nullable=True)

    # Professional metadata
    skills = Column(JSON, nullable=False, default=list)
    current_company = Column(String(100), nullable=True)
    total_experience = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(UTCDateTime, nullable=True)
    # Cache of active sessions; the sessions table is the source of truth
    active_session_count = Column(Integer, default=0, nullable=False)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    sessions = relationship(
        "Session", back_populates="user", cascade="all, delete-orphan"
    )

    # =========================================================================
    # Validation
    # =========================================================================

    @validates("email")
    def _validate_email(self, key, value):
        value = (value or "").strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValidationFailureError(
                "User validation failed",
                {"email": "Please enter a valid email address"},
            )
        return value

    @validates("name")
    def _validate_name(self, key, value):
        value = (value or "").strip()
        if not 2 <= len(value) <= 50:
            raise ValidationFailureError(
                "User validation failed",
                {"name": "Name must be between 2 and 50 characters long"},
            )
        return value

    @validates("avatar")
    def _validate_avatar(self, key, value):
        value = value or ""
        if value and not AVATAR_PATTERN.match(value):
            raise ValidationFailureError(
                "User validation failed", {"avatar": "Avatar must be a valid URL"}
            )
        return value

    @validates("skills")
    def _validate_skills(self, key, value):
        cleaned = []
        for skill in value or []:
            skill = skill.strip() if isinstance(skill, str) else ""
            if skill and skill not in cleaned:
                cleaned.append(skill)
        if len(cleaned) > MAX_SKILLS:
            raise ValidationFailureError(
                "User validation failed",
                {"skills": f"Cannot have more than {MAX_SKILLS} skills"},
            )
        return cleaned

    @validates("current_company")
    def _validate_company(self, key, value):
        if value is not None:
            value = value.strip()
            if len(value) > 100:
                raise ValidationFailureError(
                    "User validation failed",
                    {"current_company": "Company name cannot exceed 100 characters"},
                )
        return value

    @validates("total_experience")
    def _validate_experience(self, key, value):
        if value is not None and not 0 <= value <= 50:
            raise ValidationFailureError(
                "User validation failed",
                {"total_experience": "Experience must be between 0 and 50 years"},
            )
        return value

    # =========================================================================
    # Provider linking
    # =========================================================================

    @staticmethod
    def provider_column(provider: str) -> str:
        if provider not in PROVIDERS:
            raise ValueError(f"Unsupported provider: {provider}")
        return f"{provider}_id"

    def get_provider_id(self, provider: str):
        return getattr(self, self.provider_column(provider))

    def set_provider_id(self, provider: str, provider_id: str) -> None:
        setattr(self, self.provider_column(provider), provider_id)

    def has_provider(self, provider: str) -> bool:
        return bool(self.get_provider_id(provider))

    @property
    def connected_providers(self) -> list[str]:
        return [p for p in PROVIDERS if self.has_provider(p)]

    # =========================================================================
    # Session counter
    # =========================================================================

    def record_login(self) -> None:
        """Stamp the login time and count the new session. Caller commits."""
        self.last_login_at = utcnow()
        self.active_session_count = (self.active_session_count or 0) + 1

    def decrement_session_count(self, amount: int = 1) -> None:
        """Decrease the session counter, never below zero. Caller commits."""
        self.active_session_count = max(0, (self.active_session_count or 0) - amount)
