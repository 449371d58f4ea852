"""
Project Service.

Listing, detail, creation and updates of an organization's projects, and
the PDF approval history report.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from approv.core.audit import AuditEntry, log_audit
from approv.core.database.entities.clients import Client
from approv.core.database.entities.projects import Project, ProjectMember
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import ConflictError, NotFoundError, ValidationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ApprovalStatus, ProjectMemberRole, ProjectStatus
from approv.core.models.domain.lifecycle import effective_status, utc_now
from approv.server.schemas.common import Page
from approv.server.schemas.projects import (
    ProjectApprovalView,
    ProjectClient,
    ProjectCreate,
    ProjectCreated,
    ProjectDetail,
    ProjectListItem,
    ProjectListQuery,
    ProjectMemberView,
    ProjectStats,
    ProjectUpdate,
    ProjectUpdated,
)

from .approvals import RequestMeta
from .auth import AuthContext
from .reports import build_project_report, report_filename

logger = get_logger(__name__)

REQUIRED_FIELDS = frozenset({"name", "status", "current_stage"})


@dataclass(frozen=True)
class ProjectReport:
    filename: str
    content: bytes


async def generate_reference(repos: SqlRepoBundle, organization_id: str, now: Optional[datetime] = None) -> str:
    """Next ``PRJ-{year}-{nnn}`` reference, counting this year's projects."""
    now = now or utc_now()
    year_start = datetime(now.year, 1, 1)
    count = await repos.projects.count_created_since(organization_id, year_start)
    return f"PRJ-{now.year}-{count + 1:03d}"


async def list_projects(repos: SqlRepoBundle, auth: AuthContext, query: ProjectListQuery) -> Page[ProjectListItem]:
    rows, total = await repos.projects.search(
        auth.organization.id,
        status=query.status.value if query.status else None,
        stage=query.stage.value if query.stage else None,
        client_id=query.client_id,
        search=query.search,
        sort_field=query.sort_field,
        sort_direction=query.sort_direction,
        limit=query.page_size,
        offset=(query.page - 1) * query.page_size,
    )
    pending = await repos.approvals.count_pending_by_project([project.id for project, _ in rows])
    items = [
        ProjectListItem(
            id=project.id,
            name=project.name,
            reference=project.reference,
            client_name=client.full_name,
            client_company=client.company,
            status=project.status,
            current_stage=project.current_stage,
            pending_approvals=pending.get(project.id, 0),
            start_date=project.start_date,
            target_completion_date=project.target_completion_date,
            last_activity_at=project.updated_at,
        )
        for project, client in rows
    ]
    return Page[ProjectListItem].build(items, total, query.page, query.page_size)


async def get_project_detail(repos: SqlRepoBundle, auth: AuthContext, project_id: str) -> ProjectDetail:
    row = await repos.projects.get_with_client(project_id, auth.organization.id)
    if row is None:
        raise NotFoundError("Project")
    project, client = row

    members = await repos.projects.list_members(project.id)
    approvals = [approval for approval, _ in await repos.approvals.list_for_project(project.id)]
    statuses = [approval.status for approval in approvals]
    now = utc_now()

    return ProjectDetail(
        id=project.id,
        name=project.name,
        reference=project.reference,
        description=project.description,
        address=project.address,
        status=project.status,
        current_stage=project.current_stage,
        start_date=project.start_date,
        target_completion_date=project.target_completion_date,
        completed_at=project.completed_at,
        created_at=project.created_at,
        updated_at=project.updated_at,
        client=ProjectClient.model_validate(client),
        members=[
            ProjectMemberView(
                id=user.id,
                name=user.full_name,
                email=user.email,
                avatar_url=user.avatar_url,
                role=member.role,
            )
            for member, user in members
        ],
        approvals=[
            ProjectApprovalView.model_validate(approval).model_copy(update={"status": effective_status(approval, now)})
            for approval in approvals
        ],
        stats=ProjectStats(
            total_approvals=len(approvals),
            pending_approvals=statuses.count(ApprovalStatus.PENDING.value),
            approved_approvals=statuses.count(ApprovalStatus.APPROVED.value),
            changes_requested=statuses.count(ApprovalStatus.CHANGES_REQUESTED.value),
        ),
    )


async def create_project(
    repos: SqlRepoBundle, auth: AuthContext, body: ProjectCreate, meta: RequestMeta
) -> ProjectCreated:
    """
    Create a project, and its client when given inline.

    The creator joins the project as LEAD.

    Raises:
        ConflictError: When the reference is already used in the organization
        NotFoundError: When ``clientId`` is not a client of the organization
        ValidationError: ``DUPLICATE_EMAIL`` when an inline client's email is taken
    """
    organization_id = auth.organization.id
    reference = body.reference or await generate_reference(repos, organization_id)
    if await repos.projects.get_by_reference(organization_id, reference) is not None:
        raise ConflictError("A project with this reference already exists")

    if body.client_id:
        client = await repos.clients.get_for_organization(body.client_id, organization_id)
        if client is None:
            raise NotFoundError("Client")
    else:
        if await repos.clients.get_by_email(organization_id, body.client.email) is not None:
            raise ValidationError("A client with this email already exists", code="DUPLICATE_EMAIL")
        client = await repos.clients.create(
            Client(
                organization_id=organization_id,
                created_by=auth.user.id,
                first_name=body.client.first_name,
                last_name=body.client.last_name,
                email=body.client.email,
                company=body.client.company,
                phone=body.client.phone,
            )
        )

    project = Project(
        organization_id=organization_id,
        client_id=client.id,
        name=body.name,
        reference=reference,
        description=body.description,
        address=body.address,
        target_completion_date=body.target_completion_date,
    )
    if body.start_date is not None:
        project.start_date = body.start_date
    project = await repos.projects.create(project)
    await repos.projects.add_member(
        ProjectMember(project_id=project.id, user_id=auth.user.id, role=ProjectMemberRole.LEAD.value)
    )

    result = ProjectCreated(id=project.id, name=project.name, reference=project.reference, client_name=client.full_name)
    await log_audit(
        repos.session,
        AuditEntry(
            action="project.created",
            entity_type="project",
            entity_id=result.id,
            organization_id=organization_id,
            user_id=auth.user.id,
            project_id=result.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            new_state={"name": result.name, "reference": result.reference, "clientId": client.id},
        ),
    )
    logger.info("Project created", extra={"project_id": result.id, "reference": result.reference})
    return result


async def update_project(
    repos: SqlRepoBundle, auth: AuthContext, project: Project, body: ProjectUpdate, meta: RequestMeta
) -> ProjectUpdated:
    """Apply a partial update. Moving to COMPLETED stamps ``completed_at``."""
    previous = {"name": project.name, "status": project.status, "currentStage": project.current_stage}
    changes = body.model_dump(exclude_unset=True)

    for field_name, value in changes.items():
        if value is None and field_name in REQUIRED_FIELDS:
            continue
        setattr(project, field_name, value.value if hasattr(value, "value") else value)
    if body.status == ProjectStatus.COMPLETED and previous["status"] != ProjectStatus.COMPLETED.value:
        project.completed_at = utc_now()
    project = await repos.projects.update(project)

    result = ProjectUpdated(
        id=project.id,
        name=project.name,
        status=project.status,
        current_stage=project.current_stage,
        updated_at=project.updated_at,
    )
    await log_audit(
        repos.session,
        AuditEntry(
            action="project.updated",
            entity_type="project",
            entity_id=result.id,
            organization_id=auth.organization.id,
            user_id=auth.user.id,
            project_id=result.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            previous_state=previous,
            new_state=body.model_dump(mode="json", by_alias=True, exclude_unset=True),
        ),
    )
    return result


async def generate_report(
    repos: SqlRepoBundle, auth: AuthContext, project_id: str, meta: RequestMeta, now: Optional[datetime] = None
) -> ProjectReport:
    row = await repos.projects.get_with_client(project_id, auth.organization.id)
    if row is None:
        raise NotFoundError("Project")
    project, client = row

    now = now or utc_now()
    approvals = list(reversed(await repos.approvals.list_for_project(project.id)))
    audit_trail = await repos.audit_logs.list_for_project(project.id)
    content = build_project_report(
        organization_name=auth.organization.name,
        project=project,
        client=client,
        approvals=approvals,
        audit_trail=audit_trail,
        now=now,
    )
    report = ProjectReport(filename=report_filename(project.reference, now), content=content)

    await log_audit(
        repos.session,
        AuditEntry(
            action="project.report_generated",
            entity_type="project",
            entity_id=project_id,
            organization_id=auth.organization.id,
            user_id=auth.user.id,
            project_id=project_id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            metadata={"approvalsCount": len(approvals), "auditLogsCount": len(audit_trail)},
        ),
    )
    logger.info("Project report generated", extra={"project_id": project_id, "approvals_count": len(approvals)})
    return report
