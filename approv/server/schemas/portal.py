"""
Client Portal API Schemas.
"""

from datetime import datetime
from typing import List, Optional

from approv.core.models.domain.enums import ApprovalStage, ApprovalStatus, DeliverableType, ProjectStatus

from .approvals import OrganizationBranding
from .common import ApiModel


class PortalApprovalSummary(ApiModel):
    id: str
    token: str
    stage: ApprovalStage
    stage_label: str
    status: ApprovalStatus
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None


class PortalProjectSummary(ApiModel):
    id: str
    name: str
    reference: str
    status: ProjectStatus
    current_stage: ApprovalStage
    pending_approvals_count: int
    completed_approvals_count: int
    approvals: List[PortalApprovalSummary]


class PortalOverview(ApiModel):
    client_name: str
    pending_count: int
    projects: List[PortalProjectSummary]


class PortalApprovalDetail(PortalApprovalSummary):
    deliverable_type: Optional[DeliverableType] = None
    deliverable_name: Optional[str] = None
    response_notes: Optional[str] = None
    has_deliverable: bool


class PortalProjectDetail(ApiModel):
    id: str
    name: str
    reference: str
    client_name: str
    description: Optional[str] = None
    address: Optional[str] = None
    status: ProjectStatus
    current_stage: ApprovalStage
    start_date: datetime
    target_completion_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    pending_approvals_count: int
    completed_approvals_count: int
    approvals: List[PortalApprovalDetail]
    organization: OrganizationBranding
