"""
Project entity models.

A project belongs to one client and collects the approvals sent for it.
Team members are attached through :class:`ProjectMember`.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from approv.core.models.domain.enums import ApprovalStage, ProjectMemberRole, ProjectStatus
from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class Project(Base, table=True):
    """Entity for a client project.

    Table: projects
    """

    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("organization_id", "reference", name="uq_projects_organization_reference"),)

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)
    client_id: str = Field(foreign_key="clients.id", max_length=64, index=True)

    name: str = Field(max_length=200)
    reference: str = Field(max_length=50)
    description: Optional[str] = Field(default=None)
    address: Optional[str] = Field(default=None, max_length=500)
    status: str = Field(default=ProjectStatus.ACTIVE.value, max_length=32, index=True)
    current_stage: str = Field(default=ApprovalStage.INITIAL_DRAWINGS.value, max_length=32)

    start_date: datetime = Field(default_factory=utc_now)
    target_completion_date: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    # Monday.com sync
    monday_item_id: Optional[str] = Field(default=None, max_length=100, index=True)
    monday_last_sync_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Project(id={self.id}, reference={self.reference}, status={self.status})"


class ProjectMember(Base, table=True):
    """Entity linking a user to a project.

    Table: project_members
    """

    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),)

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    project_id: str = Field(foreign_key="projects.id", max_length=64, index=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    role: str = Field(default=ProjectMemberRole.MEMBER.value, max_length=32)

    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"ProjectMember(project_id={self.project_id}, user_id={self.user_id}, role={self.role})"
