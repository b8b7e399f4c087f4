"""Response schemas. Field names are camelCase on the wire for the client app."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ApiResponse(CamelModel):
    """Standard success envelope."""

    status_code: int
    data: Any = None
    message: str = "success"
    success: bool = True

    @classmethod
    def build(cls, status_code: int, message: str, data: Any = None) -> dict:
        return cls(
            status_code=status_code,
            data=data,
            message=message,
            success=200 <= status_code < 300,
        ).dump()


class UserProfile(CamelModel):
    """Sanitized user; provider ids are never exposed."""

    id: UUID
    email: str
    name: str
    avatar: str = ""
    skills: list[str] = []
    current_company: Optional[str] = None
    total_experience: Optional[int] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    active_session_count: int
    connected_providers: list[str] = []
    created_at: Optional[datetime] = None


class SessionSummary(CamelModel):
    id: int
    provider: str
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    last_used: datetime
    created_at: Optional[datetime] = None
    expires_at: datetime


class SessionStats(CamelModel):
    active_sessions: int
    total_sessions: int
    provider_breakdown: dict[str, int] = {}
