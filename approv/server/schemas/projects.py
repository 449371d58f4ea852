"""
Project API Schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from approv.core.models.domain.enums import (
    ApprovalStage,
    ApprovalStatus,
    DeliverableType,
    ProjectMemberRole,
    ProjectStatus,
)

from .common import EMAIL_PATTERN, ApiModel

UK_PHONE_PATTERN = r"^(\+44|0)[1-9]\d{9,10}$"


class InlineClient(ApiModel):
    """Client created together with a project."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=320, pattern=EMAIL_PATTERN)
    company: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, pattern=UK_PHONE_PATTERN, description="UK phone number.")


class ProjectCreate(ApiModel):
    """
    Request body for creating a project.

    Either ``clientId`` of an existing client or an inline ``client`` is required.
    """

    name: str = Field(..., min_length=3, max_length=200, examples=["Hartley Road Extension"])
    reference: Optional[str] = Field(
        default=None,
        max_length=50,
        pattern=r"^[A-Z0-9-]+$",
        description="Practice reference. Generated as PRJ-<year>-<nnn> when omitted.",
        examples=["PRJ-2026-001"],
    )
    description: Optional[str] = Field(default=None, max_length=5000)
    address: Optional[str] = Field(default=None, max_length=500)
    client_id: Optional[str] = Field(default=None, description="Existing client id.")
    client: Optional[InlineClient] = Field(default=None, description="New client to create for this project.")
    start_date: Optional[datetime] = None
    target_completion_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _require_client(self) -> "ProjectCreate":
        if not self.client_id and self.client is None:
            raise ValueError("Either clientId or client details are required")
        return self


class ProjectUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    address: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ProjectStatus] = None
    current_stage: Optional[ApprovalStage] = None
    target_completion_date: Optional[datetime] = None


class ProjectCreated(ApiModel):
    id: str
    name: str
    reference: str
    client_name: str


class ProjectListItem(ApiModel):
    id: str
    name: str
    reference: str
    client_name: str
    client_company: Optional[str] = None
    status: ProjectStatus
    current_stage: ApprovalStage
    pending_approvals: int
    start_date: datetime
    target_completion_date: Optional[datetime] = None
    last_activity_at: datetime


class ProjectListQuery(ApiModel):
    status: Optional[ProjectStatus] = None
    stage: Optional[ApprovalStage] = None
    client_id: Optional[str] = None
    search: Optional[str] = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    sort_field: str = "createdAt"
    sort_direction: Literal["asc", "desc"] = "desc"


class ProjectClient(ApiModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None


class ProjectMemberView(ApiModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    role: ProjectMemberRole


class ProjectApprovalView(ApiModel):
    id: str
    token: str
    stage: ApprovalStage
    stage_label: str
    status: ApprovalStatus
    revision: int
    deliverable_url: Optional[str] = None
    deliverable_type: Optional[DeliverableType] = None
    deliverable_name: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None
    response_notes: Optional[str] = None
    view_count: int
    reminder_count: int


class ProjectStats(ApiModel):
    total_approvals: int
    pending_approvals: int
    approved_approvals: int
    changes_requested: int


class ProjectDetail(ApiModel):
    id: str
    name: str
    reference: str
    description: Optional[str] = None
    address: Optional[str] = None
    status: ProjectStatus
    current_stage: ApprovalStage
    start_date: datetime
    target_completion_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    client: ProjectClient
    members: List[ProjectMemberView]
    approvals: List[ProjectApprovalView]
    stats: ProjectStats


class ProjectUpdated(ApiModel):
    id: str
    name: str
    status: ProjectStatus
    current_stage: ApprovalStage
    updated_at: datetime
