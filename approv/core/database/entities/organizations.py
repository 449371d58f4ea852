"""
Organization entity.

An organization is the tenant: the architecture practice that owns users,
clients, projects and approvals. It also carries branding and the
credentials of its Monday.com, Dropbox and Slack integrations.
"""

import json
from datetime import datetime
from typing import Optional

from sqlmodel import Field

from approv.core.models.domain.enums import OrganizationPlan
from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id

DEFAULT_EXPIRY_DAYS = 14
DEFAULT_REMINDER_DAYS = "[3,7,10]"


class Organization(Base, table=True):
    """Entity for a tenant account.

    Table: organizations
    """

    __tablename__ = "organizations"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    name: str = Field(max_length=200)
    slug: str = Field(max_length=100, unique=True, index=True)
    plan: str = Field(default=OrganizationPlan.FREE.value, max_length=32)

    # Branding
    logo: Optional[str] = Field(default=None, max_length=500)
    primary_color: Optional[str] = Field(default=None, max_length=7)
    email_footer_text: Optional[str] = Field(default=None, max_length=500)
    website: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)

    # Approval defaults
    default_expiry_days: int = Field(default=DEFAULT_EXPIRY_DAYS)
    reminder_days: str = Field(default=DEFAULT_REMINDER_DAYS, max_length=100)

    # Integrations
    slack_bot_token: Optional[str] = Field(default=None, max_length=500)
    slack_channel_id: Optional[str] = Field(default=None, max_length=100)
    monday_api_token: Optional[str] = Field(default=None, max_length=1000)
    monday_board_id: Optional[str] = Field(default=None, max_length=100)
    monday_oauth_state: Optional[str] = Field(default=None, max_length=200)
    dropbox_access_token: Optional[str] = Field(default=None, max_length=2000)
    dropbox_refresh_token: Optional[str] = Field(default=None, max_length=2000)
    dropbox_token_expiry: Optional[datetime] = Field(default=None)
    dropbox_oauth_state: Optional[str] = Field(default=None, max_length=200)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_reminder_days(self) -> list[int]:
        """Decode ``reminder_days`` into a list of day offsets."""
        return json.loads(self.reminder_days) if self.reminder_days else []

    def set_reminder_days(self, days: list[int]) -> None:
        self.reminder_days = json.dumps(days)

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, slug={self.slug}, plan={self.plan})"
