"""
Audit log repository.

Read side of the audit trail: activity feeds and per-project trails. Writes go
through :func:`approv.core.audit.log_audit`.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.audit_logs import AuditLog
from ..entities.projects import Project
from ..entities.users import User
from .base import AsyncQueryBuilder, SqlModelRepository

ActivityRow = Tuple[AuditLog, Optional[User], Optional[Project]]


class AuditLogRepository(SqlModelRepository[AuditLog]):
    """Repository for audit log data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuditLog)

    async def list_activity(
        self,
        organization_id: str,
        *,
        entity_type: Optional[str] = None,
        entity_types: Optional[Sequence[str]] = None,
        action: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ActivityRow], int]:
        """Organization audit entries, newest first, with their user and project.

        Args:
            organization_id: Owning organization
            entity_type: Exact entity type filter
            entity_types: Restrict to any of these entity types
            action: Substring filter on the action
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (rows, total matching rows)
        """
        conditions = [AuditLog.organization_id == organization_id]
        if entity_type:
            conditions.append(AuditLog.entity_type == entity_type)
        if entity_types:
            conditions.append(AuditLog.entity_type.in_(list(entity_types)))
        if action:
            conditions.append(AuditLog.action.contains(action))

        count_stmt = select(func.count()).select_from(AuditLog).where(*conditions)
        total = int((await self.session.exec(count_stmt)).one())

        stmt = (
            select(AuditLog, User, Project)
            .outerjoin(User, AuditLog.user_id == User.id)
            .outerjoin(Project, AuditLog.project_id == Project.id)
            .where(*conditions)
            .order_by(AuditLog.created_at.desc())
        )
        stmt = AsyncQueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return list(result.all()), total

    async def list_for_project(self, project_id: str, limit: int = 500) -> List[Tuple[AuditLog, Optional[User]]]:
        """Audit trail of a project and its approvals, oldest first."""
        stmt = (
            select(AuditLog, User)
            .outerjoin(User, AuditLog.user_id == User.id)
            .where(
                or_(
                    AuditLog.project_id == project_id,
                    and_(AuditLog.entity_type == "project", AuditLog.entity_id == project_id),
                )
            )
            .order_by(AuditLog.created_at.asc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
