"""
Approval repository.

Data access for approval requests. View counting is done with a single
``UPDATE`` so concurrent page loads do not lose increments.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.models.domain.enums import ApprovalStatus

from ..entities.approvals import Approval
from ..entities.clients import Client
from ..entities.organizations import Organization
from ..entities.projects import Project
from ..entities.users import User
from .base import AsyncQueryBuilder, SqlModelRepository

ApprovalContext = Tuple[Approval, Project, Client, Organization]


class ApprovalRepository(SqlModelRepository[Approval]):
    """Repository for approval data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Approval)

    def _context_select(self):
        return (
            select(Approval, Project, Client, Organization)
            .join(Project, Approval.project_id == Project.id)
            .join(Client, Approval.client_id == Client.id)
            .join(Organization, Project.organization_id == Organization.id)
        )

    async def get_by_token(self, token: str) -> Optional[Approval]:
        result = await self.session.exec(select(Approval).where(Approval.token == token))
        return result.one_or_none()

    async def get_context_by_token(self, token: str) -> Optional[ApprovalContext]:
        """Load an approval with its project, client and organization by public token."""
        result = await self.session.exec(self._context_select().where(Approval.token == token))
        return result.one_or_none()

    async def get_context_for_organization(self, approval_id: str, organization_id: str) -> Optional[ApprovalContext]:
        stmt = self._context_select().where(Approval.id == approval_id, Project.organization_id == organization_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def increment_view(self, approval_id: str, when: datetime) -> int:
        """Count a view of a pending approval.

        ``viewed_at`` keeps the first view time.

        Args:
            approval_id: Approval to update
            when: Time of the view

        Returns:
            Number of rows updated (0 when the approval is no longer pending)
        """
        stmt = (
            update(Approval)
            .where(Approval.id == approval_id, Approval.status == ApprovalStatus.PENDING.value)
            .values(
                view_count=Approval.view_count + 1,
                viewed_at=func.coalesce(Approval.viewed_at, when),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def list_for_organization(
        self,
        organization_id: str,
        *,
        status: Optional[str] = None,
        project_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Tuple[Approval, Project, Client]], int]:
        conditions = [Project.organization_id == organization_id]
        if status:
            conditions.append(Approval.status == status)
        if project_id:
            conditions.append(Approval.project_id == project_id)

        count_stmt = select(func.count()).select_from(Approval).join(Project, Approval.project_id == Project.id)
        total = int((await self.session.exec(count_stmt.where(*conditions))).one())

        stmt = (
            select(Approval, Project, Client)
            .join(Project, Approval.project_id == Project.id)
            .join(Client, Approval.client_id == Client.id)
            .where(*conditions)
            .order_by(Approval.created_at.desc())
        )
        stmt = AsyncQueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return list(result.all()), total

    async def list_for_project(self, project_id: str) -> List[Tuple[Approval, Optional[User]]]:
        """Approvals of a project, newest first, with the user who sent each."""
        stmt = (
            select(Approval, User)
            .outerjoin(User, Approval.sent_by_id == User.id)
            .where(Approval.project_id == project_id)
            .order_by(Approval.created_at.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_for_projects(self, project_ids: Sequence[str]) -> List[Approval]:
        if not project_ids:
            return []
        stmt = select(Approval).where(Approval.project_id.in_(list(project_ids))).order_by(Approval.created_at.desc())
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_pending_by_project(self, project_ids: Sequence[str]) -> Dict[str, int]:
        if not project_ids:
            return {}
        stmt = (
            select(Approval.project_id, func.count())
            .where(Approval.project_id.in_(list(project_ids)), Approval.status == ApprovalStatus.PENDING.value)
            .group_by(Approval.project_id)
        )
        result = await self.session.exec(stmt)
        return {project_id: int(count) for project_id, count in result.all()}

    async def count_open_for_organization(self, organization_id: str, now: datetime) -> int:
        """Pending approvals that have not expired yet."""
        stmt = (
            select(func.count())
            .select_from(Approval)
            .join(Project, Approval.project_id == Project.id)
            .where(
                Project.organization_id == organization_id,
                Approval.status == ApprovalStatus.PENDING.value,
                Approval.expires_at > now,
            )
        )
        result = await self.session.exec(stmt)
        return int(result.one())

    async def list_created_between(
        self, organization_id: str, start: datetime, end: Optional[datetime] = None
    ) -> List[Approval]:
        stmt = (
            select(Approval)
            .join(Project, Approval.project_id == Project.id)
            .where(Project.organization_id == organization_id, Approval.created_at >= start)
        )
        if end is not None:
            stmt = stmt.where(Approval.created_at < end)
        result = await self.session.exec(stmt.order_by(Approval.created_at))
        return list(result.all())

    async def list_bottlenecks(
        self, organization_id: str, now: datetime, limit: int, min_days: int = 3
    ) -> List[Tuple[Approval, Project, Client]]:
        """Pending, unexpired approvals older than ``min_days``, oldest first."""
        stmt = (
            select(Approval, Project, Client)
            .join(Project, Approval.project_id == Project.id)
            .join(Client, Approval.client_id == Client.id)
            .where(
                Project.organization_id == organization_id,
                Approval.status == ApprovalStatus.PENDING.value,
                Approval.created_at < now - timedelta(days=min_days),
                Approval.expires_at > now,
            )
            .order_by(Approval.created_at.asc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_open_with_context(self, now: datetime) -> List[ApprovalContext]:
        """All pending, unexpired approvals across organizations, for the reminder job."""
        stmt = self._context_select().where(
            Approval.status == ApprovalStatus.PENDING.value,
            Approval.expires_at > now,
        )
        result = await self.session.exec(stmt.order_by(Approval.created_at))
        return list(result.all())
