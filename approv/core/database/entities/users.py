"""
User entity.

Users are members of an organization's team. Their identity lives in Clerk;
``external_id`` is the Clerk user id (the session token subject).
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from approv.core.models.domain.enums import UserRole
from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class User(Base, table=True):
    """Entity for a team member.

    Table: users
    """

    __tablename__ = "users"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    external_id: str = Field(max_length=128, unique=True, index=True)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)

    email: str = Field(max_length=320)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=1000)
    role: str = Field(default=UserRole.MEMBER.value, max_length=32)
    is_active: bool = Field(default=True)
    last_login_at: Optional[datetime] = Field(default=None)

    # Notification preferences
    email_notifications: bool = Field(default=True)
    slack_notifications: bool = Field(default=False)
    daily_digest: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email

    def __repr__(self) -> str:
        return f"User(id={self.id}, role={self.role}, organization_id={self.organization_id})"
