"""
Approval entity.

One approval is one deliverable-review request sent to a client. The client
reaches it through ``token`` without logging in. See
:mod:`approv.core.models.domain.lifecycle` for the status transitions.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from approv.core.models.domain.enums import ApprovalStatus
from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class Approval(Base, table=True):
    """Entity for an approval request.

    Table: approvals
    """

    __tablename__ = "approvals"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    token: str = Field(default_factory=generate_id, max_length=64, unique=True, index=True)
    project_id: str = Field(foreign_key="projects.id", max_length=64, index=True)
    client_id: str = Field(foreign_key="clients.id", max_length=64, index=True)
    sent_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=64)

    stage: str = Field(max_length=32)
    stage_label: str = Field(max_length=100)
    status: str = Field(default=ApprovalStatus.PENDING.value, max_length=32, index=True)

    deliverable_url: Optional[str] = Field(default=None, max_length=2000)
    deliverable_type: Optional[str] = Field(default=None, max_length=16)
    deliverable_name: Optional[str] = Field(default=None, max_length=200)

    expires_at: datetime = Field(index=True)
    responded_at: Optional[datetime] = Field(default=None)
    response_notes: Optional[str] = Field(default=None)
    response_time_hours: Optional[float] = Field(default=None)

    # Tracking counters
    view_count: int = Field(default=0)
    viewed_at: Optional[datetime] = Field(default=None)
    reminder_count: int = Field(default=0)
    last_reminder_at: Optional[datetime] = Field(default=None)

    # Resubmission
    revision: int = Field(default=1)
    resubmitted_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Approval(id={self.id}, project_id={self.project_id}, stage={self.stage}, status={self.status})"
