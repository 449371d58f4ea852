"""
Database entity models.

Each module holds one table (``projects`` also holds the project membership
link table):

- organizations: Tenant accounts, branding and integration credentials
- users: Team members mirrored from Clerk
- clients: The practice's clients and their portal access
- projects: Projects and project members
- approvals: Approval requests and their lifecycle fields
- reminders: Reminders sent for approvals
- audit_logs: Audit trail
- csrf_tokens: Issued CSRF token hashes
- email_templates: Organization email template overrides
"""

from .approvals import Approval
from .audit_logs import AuditLog
from .clients import Client
from .csrf_tokens import CsrfToken
from .email_templates import EmailTemplate
from .organizations import Organization
from .projects import Project, ProjectMember
from .reminders import Reminder
from .users import User

__all__ = [
    "Approval",
    "AuditLog",
    "Client",
    "CsrfToken",
    "EmailTemplate",
    "Organization",
    "Project",
    "ProjectMember",
    "Reminder",
    "User",
]
