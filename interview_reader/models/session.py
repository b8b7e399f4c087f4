"""Session model for per-device login sessions."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship

from interview_reader.database import Base, UTCDateTime
from interview_reader.models.user import utcnow


class Session(Base):
    """One authenticated device/browser context holding a token pair."""

    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint(
            "provider IN ('google', 'github', 'linkedin')",
            name="ck_sessions_provider",
        ),
        Index("ix_sessions_user_id_is_active", "user_id", "is_active"),
        Index("ix_sessions_expires_at_is_active", "expires_at", "is_active"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    refresh_token = Column(String(1024), unique=True, index=True, nullable=False)
    access_token = Column(String(1024), index=True, nullable=False)
    provider = Column(String(20), nullable=False)

    # Device fingerprint, informational only
    user_agent = Column(String(512), nullable=True)
    ip_address = Column(String(45), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_used = Column(UTCDateTime, default=utcnow, nullable=False)
    expires_at = Column(UTCDateTime, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)
    logged_out_at = Column(UTCDateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="sessions")
