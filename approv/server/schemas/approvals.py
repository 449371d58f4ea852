"""
Approval API Schemas.

Request and response bodies for the public approval page, the team's
approval list and the reminder/resubmission actions.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, HttpUrl

from approv.core.models.domain.enums import ApprovalAction, ApprovalStage, ApprovalStatus, DeliverableType

from .common import ApiModel


class OrganizationBranding(ApiModel):
    name: str
    logo: Optional[str] = None
    primary_color: Optional[str] = None


class PublicApprovalView(ApiModel):
    """What a client sees when opening an approval link."""

    id: str
    project_name: str
    project_reference: str
    client_name: str
    client_company: Optional[str] = None
    stage: ApprovalStage
    stage_label: str
    status: ApprovalStatus
    deliverable_url: Optional[str] = None
    deliverable_type: Optional[DeliverableType] = None
    deliverable_name: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None
    response_notes: Optional[str] = None
    organization: OrganizationBranding


class ApprovalRespond(ApiModel):
    """
    Client response to an approval request.

    Feedback notes are required (at least 10 characters) when requesting changes.
    """

    action: ApprovalAction = Field(..., description="Either approve or request_changes.", examples=["approve"])
    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Feedback for the design team.",
        examples=["Please move the kitchen window 300mm to the left."],
    )


class ApprovalResponseResult(ApiModel):
    id: str
    status: ApprovalStatus
    responded_at: datetime
    message: str


class ApprovalListItem(ApiModel):
    id: str
    project_id: str
    project_name: str
    project_reference: str
    client_name: str
    client_company: Optional[str] = None
    stage: ApprovalStage
    stage_label: str
    status: ApprovalStatus
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None
    view_count: int
    reminder_count: int


class ReminderResult(ApiModel):
    message: str
    reminder_count: int


class ApprovalResubmit(ApiModel):
    """
    Resubmission of an approval after the client requested changes.

    Any deliverable field left out keeps its previous value.
    """

    deliverable_url: Optional[HttpUrl] = Field(default=None, description="Link to the revised deliverable.")
    deliverable_type: Optional[DeliverableType] = Field(default=None, description="PDF, IMAGE or LINK.")
    deliverable_name: Optional[str] = Field(default=None, max_length=200, description="Display name of the file.")
    expires_in_days: Optional[int] = Field(
        default=None, ge=1, le=90, description="Days until the new request expires. Defaults to the practice setting."
    )


class ApprovalResubmitResult(ApiModel):
    id: str
    status: ApprovalStatus
    revision: int
    expires_at: datetime
    approval_url: str


class ApprovalCreate(ApiModel):
    """Request body for sending a new approval request on a project."""

    stage: ApprovalStage = Field(..., description="Project stage the deliverable belongs to.")
    stage_label: str = Field(..., min_length=1, max_length=100, description="Label shown to the client.")
    deliverable_url: Optional[HttpUrl] = Field(default=None, description="Link to the deliverable (http or https).")
    deliverable_type: Optional[DeliverableType] = Field(default=None, description="PDF, IMAGE or LINK.")
    deliverable_name: Optional[str] = Field(default=None, max_length=200)
    expires_in_days: Optional[int] = Field(
        default=None, ge=1, le=90, description="Days until the request expires. Defaults to the practice setting."
    )


class ApprovalCreated(ApiModel):
    id: str
    token: str
    stage: ApprovalStage
    stage_label: str
    expires_at: datetime
    approval_url: str
