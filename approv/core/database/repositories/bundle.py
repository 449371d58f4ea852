"""
Repository bundle for dependency injection.

This module provides a convenience bundle of all repository instances
sharing one session, for route handlers, services and the reminder job.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from .approvals import ApprovalRepository
from .audit_logs import AuditLogRepository
from .clients import ClientRepository
from .csrf_tokens import CsrfTokenRepository
from .email_templates import EmailTemplateRepository
from .organizations import OrganizationRepository
from .projects import ProjectRepository
from .reminders import ReminderRepository
from .users import UserRepository


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories for dependency injection."""

    session: AsyncSession
    organizations: OrganizationRepository
    users: UserRepository
    clients: ClientRepository
    projects: ProjectRepository
    approvals: ApprovalRepository
    reminders: ReminderRepository
    audit_logs: AuditLogRepository
    csrf_tokens: CsrfTokenRepository
    email_templates: EmailTemplateRepository


def build_sql_repos_from_session(*, session: AsyncSession) -> SqlRepoBundle:
    """Build a SqlRepoBundle whose repositories share ``session``.

    Args:
        session: Async SQLModel session

    Returns:
        Bundle containing all repository instances
    """
    return SqlRepoBundle(
        session=session,
        organizations=OrganizationRepository(session),
        users=UserRepository(session),
        clients=ClientRepository(session),
        projects=ProjectRepository(session),
        approvals=ApprovalRepository(session),
        reminders=ReminderRepository(session),
        audit_logs=AuditLogRepository(session),
        csrf_tokens=CsrfTokenRepository(session),
        email_templates=EmailTemplateRepository(session),
    )
