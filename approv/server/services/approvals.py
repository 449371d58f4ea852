"""
Approval Workflow Service.

This module ties the lifecycle rules in
:mod:`approv.core.models.domain.lifecycle` to persistence, auditing and
notifications for every approval operation exposed by the API.

Database work and the audit entry happen inside the request. Emails and the
Monday.com sync are described by small notice objects that route handlers
hand to FastAPI background tasks, so a slow or failing provider never delays
or fails the client's response.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from approv.core.audit import AuditEntry, log_audit
from approv.core.database.entities.approvals import Approval
from approv.core.database.entities.clients import Client
from approv.core.database.entities.organizations import Organization
from approv.core.database.entities.projects import Project
from approv.core.database.entities.reminders import Reminder
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import NotFoundError, ValidationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ApprovalStatus, ReminderChannel, ReminderType
from approv.core.models.domain.lifecycle import (
    RESPONSE_MESSAGES,
    apply_response,
    apply_resubmission,
    days_pending,
    effective_status,
    expiry_from,
    is_expired,
    is_valid_token,
    manual_reminder_type,
    should_track_view,
    utc_now,
)
from approv.server.schemas.approvals import (
    ApprovalCreate,
    ApprovalCreated,
    ApprovalListItem,
    ApprovalRespond,
    ApprovalResponseResult,
    ApprovalResubmit,
    ApprovalResubmitResult,
    OrganizationBranding,
    PublicApprovalView,
    ReminderResult,
)
from approv.server.schemas.common import Page

from .auth import AuthContext
from .email import Branding, EmailService
from .monday import MondayService

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestMeta:
    """Who made the request, for the audit trail."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class ApprovalRequestNotice:
    """Everything needed to email an approval link to a client."""

    to: str
    client_name: str
    project_name: str
    stage_label: str
    token: str
    expires_at: datetime
    branding: Branding


@dataclass(frozen=True)
class ResponseNotice:
    """Everything needed to announce a client's response."""

    status: ApprovalStatus
    notes: Optional[str]
    client_email: str
    client_first_name: str
    client_full_name: str
    project_id: str
    project_name: str
    stage_label: str
    branding: Branding
    team_emails: List[str] = field(default_factory=list)
    monday_token: Optional[str] = None
    monday_board_id: Optional[str] = None
    monday_item_id: Optional[str] = None


def branding_for(organization: Organization) -> Branding:
    return Branding(
        name=organization.name,
        primary_color=organization.primary_color or Branding.primary_color,
        footer_text=organization.email_footer_text,
    )


def request_notice(
    approval: Approval, project: Project, client: Client, organization: Organization
) -> ApprovalRequestNotice:
    return ApprovalRequestNotice(
        to=client.email,
        client_name=client.first_name,
        project_name=project.name,
        stage_label=approval.stage_label,
        token=approval.token,
        expires_at=approval.expires_at,
        branding=branding_for(organization),
    )


async def send_approval_request(notice: ApprovalRequestNotice, email_service: EmailService) -> None:
    sent = await email_service.send_approval_request(
        to=notice.to,
        client_name=notice.client_name,
        project_name=notice.project_name,
        stage_label=notice.stage_label,
        approval_url=email_service.approval_url(notice.token),
        expires_at=notice.expires_at,
        branding=notice.branding,
    )
    if not sent:
        logger.warning(f"Approval request email for '{notice.project_name}' was not sent")


async def deliver_response_notifications(
    notice: ResponseNotice, email_service: EmailService, monday_service: MondayService
) -> None:
    """Confirmation email, team notification and Monday.com sync for one response.

    Each step is independent; a failure is logged and the next step still runs.
    """
    try:
        await email_service.send_approval_confirmation(
            to=notice.client_email,
            client_name=notice.client_first_name,
            project_name=notice.project_name,
            stage_label=notice.stage_label,
            status=notice.status,
            branding=notice.branding,
        )
    except Exception as e:
        logger.error(f"Failed to send confirmation email: {e}", exc_info=True)

    if notice.team_emails:
        try:
            await email_service.send_team_notification(
                to=notice.team_emails,
                client_name=notice.client_full_name,
                project_name=notice.project_name,
                stage_label=notice.stage_label,
                status=notice.status,
                notes=notice.notes,
                project_url=email_service.project_url(notice.project_id),
                branding=notice.branding,
            )
        except Exception as e:
            logger.error(f"Failed to send team notification: {e}", exc_info=True)

    if notice.monday_item_id:
        try:
            await monday_service.sync_approval(
                token=notice.monday_token,
                board_id=notice.monday_board_id,
                item_id=notice.monday_item_id,
                status=notice.status,
            )
        except Exception as e:
            logger.error(f"Failed to sync approval to Monday.com: {e}", exc_info=True)


# =====================================================================
# Public (token) operations
# =====================================================================


async def get_public_approval(repos: SqlRepoBundle, token: str, now: Optional[datetime] = None) -> PublicApprovalView:
    """
    Load the approval behind a link and count the view.

    Raises:
        NotFoundError: For malformed or unknown tokens
    """
    if not is_valid_token(token):
        raise NotFoundError("Approval")
    context = await repos.approvals.get_context_by_token(token)
    if context is None:
        raise NotFoundError("Approval")
    approval, project, client, organization = context

    now = now or utc_now()
    status = effective_status(approval, now)
    view = PublicApprovalView(
        id=approval.id,
        project_name=project.name,
        project_reference=project.reference,
        client_name=client.full_name,
        client_company=client.company,
        stage=approval.stage,
        stage_label=approval.stage_label,
        status=status,
        deliverable_url=approval.deliverable_url,
        deliverable_type=approval.deliverable_type,
        deliverable_name=approval.deliverable_name,
        created_at=approval.created_at,
        expires_at=approval.expires_at,
        responded_at=approval.responded_at,
        response_notes=approval.response_notes if approval.status != ApprovalStatus.PENDING else None,
        organization=OrganizationBranding(
            name=organization.name, logo=organization.logo, primary_color=organization.primary_color
        ),
    )

    # A rollback expires the loaded rows, so nothing below may read ORM attributes
    approval_id = approval.id
    if should_track_view(approval, now):
        try:
            await repos.approvals.increment_view(approval_id, now)
        except Exception as e:
            await repos.session.rollback()
            logger.warning(f"Failed to track view of approval {approval_id}: {e}")

    logger.info("Approval viewed", extra={"approval_id": approval_id, "status": status.value})
    return view


async def track_view(repos: SqlRepoBundle, token: str, now: Optional[datetime] = None) -> None:
    """Count a view of a pending approval. Unknown or malformed tokens are ignored."""
    if not is_valid_token(token):
        return
    approval = await repos.approvals.get_by_token(token)
    if approval is None:
        return
    approval_id = approval.id
    try:
        await repos.approvals.increment_view(approval_id, now or utc_now())
    except Exception as e:
        await repos.session.rollback()
        logger.warning(f"Failed to track view of approval {approval_id}: {e}")


async def respond(
    repos: SqlRepoBundle,
    token: str,
    body: ApprovalRespond,
    meta: RequestMeta,
    now: Optional[datetime] = None,
) -> Tuple[ApprovalResponseResult, ResponseNotice]:
    """
    Record a client's approve / request-changes response.

    Returns:
        The API result and the notice describing the follow-up notifications

    Raises:
        NotFoundError: For malformed or unknown tokens
        ValidationError: ``ALREADY_RESPONDED``, ``APPROVAL_EXPIRED`` or invalid notes
    """
    if not is_valid_token(token):
        raise NotFoundError("Approval")
    context = await repos.approvals.get_context_by_token(token)
    if context is None:
        raise NotFoundError("Approval")
    approval, project, client, organization = context

    now = now or utc_now()
    new_status = apply_response(approval, body.action, body.notes, now)
    approval = await repos.approvals.update(approval)
    logger.info(
        "Approval response submitted",
        extra={
            "approval_id": approval.id,
            "action": body.action.value,
            "response_time_hours": round(approval.response_time_hours or 0, 2),
        },
    )

    team = await repos.users.list_active_by_organization(organization.id, email_opt_in_only=True)
    notice = ResponseNotice(
        status=new_status,
        notes=approval.response_notes,
        client_email=client.email,
        client_first_name=client.first_name,
        client_full_name=client.full_name,
        project_id=project.id,
        project_name=project.name,
        stage_label=approval.stage_label,
        branding=branding_for(organization),
        team_emails=[member.email for member in team],
        monday_token=organization.monday_api_token,
        monday_board_id=organization.monday_board_id,
        monday_item_id=project.monday_item_id,
    )
    result = ApprovalResponseResult(
        id=approval.id,
        status=new_status,
        responded_at=approval.responded_at,
        message=RESPONSE_MESSAGES[new_status],
    )

    # Last, so a failed audit write cannot expire the rows used above.
    await log_audit(
        repos.session,
        AuditEntry(
            action=f"approval.{body.action.value}",
            entity_type="approval",
            entity_id=result.id,
            organization_id=organization.id,
            project_id=notice.project_id,
            approval_id=result.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            metadata={
                "projectId": notice.project_id,
                "stage": approval.stage,
                "responseTimeHours": f"{approval.response_time_hours:.2f}",
            },
            previous_state={"status": ApprovalStatus.PENDING.value},
            new_state={"status": new_status.value, "notes": notice.notes},
        ),
    )
    return result, notice


# =====================================================================
# Team operations
# =====================================================================


async def list_approvals(
    repos: SqlRepoBundle,
    auth: AuthContext,
    *,
    status: Optional[str] = None,
    project_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    now: Optional[datetime] = None,
) -> Page[ApprovalListItem]:
    now = now or utc_now()
    offset = (page - 1) * page_size
    rows, total = await repos.approvals.list_for_organization(
        auth.organization.id, status=status, project_id=project_id, limit=page_size, offset=offset
    )
    items = [
        ApprovalListItem(
            id=approval.id,
            project_id=project.id,
            project_name=project.name,
            project_reference=project.reference,
            client_name=client.full_name,
            client_company=client.company,
            stage=approval.stage,
            stage_label=approval.stage_label,
            status=effective_status(approval, now),
            created_at=approval.created_at,
            expires_at=approval.expires_at,
            responded_at=approval.responded_at,
            view_count=approval.view_count,
            reminder_count=approval.reminder_count,
        )
        for approval, project, client in rows
    ]
    return Page[ApprovalListItem].build(items, total, page, page_size)


async def remind_client(
    repos: SqlRepoBundle,
    auth: AuthContext,
    approval_id: str,
    email_service: EmailService,
    reminder_type: Optional[ReminderType] = None,
    now: Optional[datetime] = None,
) -> Tuple[Approval, Reminder]:
    """
    Email the client a reminder for a pending approval and record it.

    Without an explicit ``reminder_type`` the type follows the number of
    reminders already sent.

    Raises:
        NotFoundError: Unless the approval is pending and belongs to the caller's organization
        ValidationError: ``APPROVAL_EXPIRED`` when the link has already expired
    """
    context = await repos.approvals.get_context_for_organization(approval_id, auth.organization.id)
    if context is None or context[0].status != ApprovalStatus.PENDING:
        raise NotFoundError("Approval")
    approval, project, client, organization = context

    now = now or utc_now()
    if is_expired(approval, now):
        raise ValidationError("Cannot send reminder for expired approval", code="APPROVAL_EXPIRED")

    await email_service.send_approval_reminder(
        to=client.email,
        client_name=client.first_name,
        project_name=project.name,
        stage_label=approval.stage_label,
        approval_url=email_service.approval_url(approval.token),
        days_pending=days_pending(approval, now),
        expires_at=approval.expires_at,
        branding=branding_for(organization),
    )

    reminder_type = reminder_type or manual_reminder_type(approval.reminder_count)
    approval.reminder_count += 1
    approval.last_reminder_at = now
    approval = await repos.approvals.update(approval)
    reminder = await repos.reminders.create(
        Reminder(
            approval_id=approval.id,
            type=reminder_type.value,
            channel=ReminderChannel.EMAIL.value,
            sent_by_id=auth.user.id,
            scheduled_for=now,
            sent_at=now,
        )
    )

    logger.info("Reminder sent", extra={"approval_id": approval.id, "reminder_count": approval.reminder_count})
    return approval, reminder


async def send_manual_reminder(
    repos: SqlRepoBundle,
    auth: AuthContext,
    approval_id: str,
    email_service: EmailService,
    now: Optional[datetime] = None,
) -> ReminderResult:
    approval, _ = await remind_client(repos, auth, approval_id, email_service, now=now)
    return ReminderResult(message="Reminder sent successfully", reminder_count=approval.reminder_count)


async def resubmit(
    repos: SqlRepoBundle,
    auth: AuthContext,
    approval_id: str,
    body: ApprovalResubmit,
    meta: RequestMeta,
    approval_url_for: Callable[[str], str],
    now: Optional[datetime] = None,
) -> Tuple[ApprovalResubmitResult, ApprovalRequestNotice]:
    """
    Send an approval with requested changes back to the client as a new revision.

    Raises:
        NotFoundError: When the approval is not in the caller's organization
        ValidationError: ``INVALID_STATE_TRANSITION`` unless changes were requested
    """
    context = await repos.approvals.get_context_for_organization(approval_id, auth.organization.id)
    if context is None:
        raise NotFoundError("Approval")
    approval, project, client, organization = context

    previous_status = approval.status
    apply_resubmission(
        approval,
        body.expires_in_days or organization.default_expiry_days,
        now or utc_now(),
        deliverable_url=str(body.deliverable_url) if body.deliverable_url is not None else None,
        deliverable_type=body.deliverable_type.value if body.deliverable_type is not None else None,
        deliverable_name=body.deliverable_name,
    )
    approval = await repos.approvals.update(approval)

    result = ApprovalResubmitResult(
        id=approval.id,
        status=ApprovalStatus(approval.status),
        revision=approval.revision,
        expires_at=approval.expires_at,
        approval_url=approval_url_for(approval.token),
    )
    notice = request_notice(approval, project, client, organization)

    await log_audit(
        repos.session,
        AuditEntry(
            action="approval.resubmitted",
            entity_type="approval",
            entity_id=approval.id,
            organization_id=organization.id,
            user_id=auth.user.id,
            project_id=project.id,
            approval_id=approval.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            metadata={"projectId": project.id, "stage": approval.stage, "revision": approval.revision},
            previous_state={"status": previous_status},
            new_state={"status": approval.status, "revision": approval.revision},
        ),
    )
    logger.info("Approval resubmitted", extra={"approval_id": result.id, "revision": result.revision})
    return result, notice


async def create_approval(
    repos: SqlRepoBundle,
    auth: AuthContext,
    project: Project,
    body: ApprovalCreate,
    meta: RequestMeta,
    approval_url_for: Callable[[str], str],
    now: Optional[datetime] = None,
) -> Tuple[ApprovalCreated, ApprovalRequestNotice]:
    """Create a pending approval on ``project`` for the project's client."""
    client = await repos.clients.get_by_id(project.client_id)
    if client is None:
        raise NotFoundError("Client")

    organization = auth.organization
    expires_in_days = body.expires_in_days or organization.default_expiry_days
    approval = await repos.approvals.create(
        Approval(
            project_id=project.id,
            client_id=client.id,
            sent_by_id=auth.user.id,
            stage=body.stage.value,
            stage_label=body.stage_label,
            deliverable_url=str(body.deliverable_url) if body.deliverable_url is not None else None,
            deliverable_type=body.deliverable_type.value if body.deliverable_type is not None else None,
            deliverable_name=body.deliverable_name,
            expires_at=expiry_from(now or utc_now(), expires_in_days),
        )
    )

    result = ApprovalCreated(
        id=approval.id,
        token=approval.token,
        stage=approval.stage,
        stage_label=approval.stage_label,
        expires_at=approval.expires_at,
        approval_url=approval_url_for(approval.token),
    )
    notice = request_notice(approval, project, client, organization)

    await log_audit(
        repos.session,
        AuditEntry(
            action="approval.created",
            entity_type="approval",
            entity_id=approval.id,
            organization_id=organization.id,
            user_id=auth.user.id,
            project_id=project.id,
            approval_id=approval.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            metadata={"projectId": project.id, "stage": approval.stage, "expiresInDays": expires_in_days},
            new_state={"status": approval.status},
        ),
    )
    logger.info("Approval created", extra={"approval_id": result.id})
    return result, notice
