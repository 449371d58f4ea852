"""
Reminder entity.

Records each reminder sent for an approval, by hand or through the
notifications API.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from approv.core.models.domain.enums import ReminderChannel
from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class Reminder(Base, table=True):
    """Entity for a sent reminder.

    Table: reminders
    """

    __tablename__ = "reminders"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    approval_id: str = Field(foreign_key="approvals.id", max_length=64, index=True)
    sent_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=64)

    type: str = Field(max_length=32)
    channel: str = Field(default=ReminderChannel.EMAIL.value, max_length=16)
    scheduled_for: datetime = Field(default_factory=utc_now)
    sent_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Reminder(id={self.id}, approval_id={self.approval_id}, type={self.type})"
