"""
Repositories for the Approv persistence layer.

One repository per entity, all built on :class:`SqlModelRepository`, plus
:class:`SqlRepoBundle` to hand them out together.
"""

from .approvals import ApprovalRepository
from .audit_logs import AuditLogRepository
from .base import AsyncBaseRepository, AsyncQueryBuilder, SqlModelRepository
from .bundle import SqlRepoBundle, build_sql_repos_from_session
from .clients import ClientRepository
from .csrf_tokens import CsrfTokenRepository
from .email_templates import EmailTemplateRepository
from .organizations import OrganizationRepository
from .projects import ProjectRepository
from .reminders import ReminderRepository
from .users import UserRepository

__all__ = [
    "ApprovalRepository",
    "AsyncBaseRepository",
    "AsyncQueryBuilder",
    "AuditLogRepository",
    "ClientRepository",
    "CsrfTokenRepository",
    "EmailTemplateRepository",
    "OrganizationRepository",
    "ProjectRepository",
    "ReminderRepository",
    "SqlModelRepository",
    "SqlRepoBundle",
    "UserRepository",
    "build_sql_repos_from_session",
]
