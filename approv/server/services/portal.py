"""
Client Portal Service.

Read-only views for a client signed in with a portal token: their active
projects and the approvals sent to them.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from approv.core.database.entities.approvals import Approval
from approv.core.database.entities.clients import Client
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import NotFoundError
from approv.core.models.domain.enums import ApprovalStatus
from approv.core.models.domain.lifecycle import effective_status, utc_now
from approv.server.schemas.approvals import OrganizationBranding
from approv.server.schemas.portal import (
    PortalApprovalDetail,
    PortalApprovalSummary,
    PortalOverview,
    PortalProjectDetail,
    PortalProjectSummary,
)

ANSWERED = (ApprovalStatus.APPROVED.value, ApprovalStatus.CHANGES_REQUESTED.value)


def _counts(approvals: Sequence[Approval], now: datetime) -> tuple[int, int]:
    pending = sum(1 for a in approvals if effective_status(a, now) == ApprovalStatus.PENDING)
    completed = sum(1 for a in approvals if a.status in ANSWERED)
    return pending, completed


def _summary(approval: Approval, now: datetime) -> PortalApprovalSummary:
    return PortalApprovalSummary(
        id=approval.id,
        token=approval.token,
        stage=approval.stage,
        stage_label=approval.stage_label,
        status=effective_status(approval, now),
        created_at=approval.created_at,
        expires_at=approval.expires_at,
        responded_at=approval.responded_at,
    )


async def get_overview(repos: SqlRepoBundle, client: Client, now: Optional[datetime] = None) -> PortalOverview:
    now = now or utc_now()
    projects = await repos.projects.list_for_portal(client.id)
    by_project: Dict[str, List[Approval]] = defaultdict(list)
    for approval in await repos.approvals.list_for_projects([project.id for project in projects]):
        by_project[approval.project_id].append(approval)

    summaries = []
    total_pending = 0
    for project in projects:
        approvals = by_project[project.id]
        pending, completed = _counts(approvals, now)
        total_pending += pending
        summaries.append(
            PortalProjectSummary(
                id=project.id,
                name=project.name,
                reference=project.reference,
                status=project.status,
                current_stage=project.current_stage,
                pending_approvals_count=pending,
                completed_approvals_count=completed,
                approvals=[_summary(approval, now) for approval in approvals],
            )
        )
    return PortalOverview(client_name=client.full_name, pending_count=total_pending, projects=summaries)


async def get_project(
    repos: SqlRepoBundle, client: Client, project_id: str, now: Optional[datetime] = None
) -> PortalProjectDetail:
    """
    One of the client's projects with its approvals.

    Raises:
        NotFoundError: When the project does not belong to the client
    """
    project = await repos.projects.get_for_client(project_id, client.id)
    if project is None:
        raise NotFoundError("Project")
    organization = await repos.organizations.get_by_id(project.organization_id)
    if organization is None:
        raise NotFoundError("Project")

    now = now or utc_now()
    approvals = await repos.approvals.list_for_projects([project.id])
    pending, completed = _counts(approvals, now)
    return PortalProjectDetail(
        id=project.id,
        name=project.name,
        reference=project.reference,
        client_name=client.full_name,
        description=project.description,
        address=project.address,
        status=project.status,
        current_stage=project.current_stage,
        start_date=project.start_date,
        target_completion_date=project.target_completion_date,
        completed_at=project.completed_at,
        pending_approvals_count=pending,
        completed_approvals_count=completed,
        approvals=[
            PortalApprovalDetail(
                **_summary(approval, now).model_dump(),
                deliverable_type=approval.deliverable_type,
                deliverable_name=approval.deliverable_name,
                response_notes=approval.response_notes if approval.status != ApprovalStatus.PENDING.value else None,
                has_deliverable=bool(approval.deliverable_url),
            )
            for approval in approvals
        ],
        organization=OrganizationBranding(
            name=organization.name, logo=organization.logo, primary_color=organization.primary_color
        ),
    )
