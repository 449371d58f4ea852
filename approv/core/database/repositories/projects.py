"""
Project repository.

Data access for projects and their team membership, including the filtered,
sorted listing used by the dashboard and the client portal queries.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.models.domain.enums import ProjectStatus

from ..entities.clients import Client
from ..entities.projects import Project, ProjectMember
from ..entities.users import User
from .base import AsyncQueryBuilder, SqlModelRepository

SORTABLE_FIELDS = {
    "createdAt": Project.created_at,
    "updatedAt": Project.updated_at,
    "name": Project.name,
    "reference": Project.reference,
    "status": Project.status,
    "currentStage": Project.current_stage,
    "startDate": Project.start_date,
    "targetCompletionDate": Project.target_completion_date,
}


class ProjectRepository(SqlModelRepository[Project]):
    """Repository for project data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    async def get_for_organization(self, project_id: str, organization_id: str) -> Optional[Project]:
        stmt = select(Project).where(Project.id == project_id, Project.organization_id == organization_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_with_client(self, project_id: str, organization_id: str) -> Optional[Tuple[Project, Client]]:
        stmt = (
            select(Project, Client)
            .join(Client, Project.client_id == Client.id)
            .where(Project.id == project_id, Project.organization_id == organization_id)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_for_client(self, project_id: str, client_id: str) -> Optional[Project]:
        stmt = select(Project).where(Project.id == project_id, Project.client_id == client_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_reference(self, organization_id: str, reference: str) -> Optional[Project]:
        stmt = select(Project).where(Project.organization_id == organization_id, Project.reference == reference)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def count_created_since(self, organization_id: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Project)
            .where(Project.organization_id == organization_id, Project.created_at >= since)
        )
        result = await self.session.exec(stmt)
        return int(result.one())

    async def count_active(self, organization_id: str) -> int:
        return await self.count({"organization_id": organization_id, "status": ProjectStatus.ACTIVE.value})

    async def count_for_client(self, client_id: str) -> int:
        return await self.count({"client_id": client_id})

    async def search(
        self,
        organization_id: str,
        *,
        status: Optional[str] = None,
        stage: Optional[str] = None,
        client_id: Optional[str] = None,
        search: Optional[str] = None,
        sort_field: str = "createdAt",
        sort_direction: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Tuple[Project, Client]], int]:
        """List an organization's projects with their clients.

        Args:
            organization_id: Owning organization
            status: Project status filter
            stage: Current stage filter
            client_id: Client filter
            search: Case-insensitive match on name, reference and client name/company
            sort_field: API field name to sort by (unknown names fall back to createdAt)
            sort_direction: ``asc`` or ``desc``
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (project/client rows, total matching rows)
        """
        conditions = [Project.organization_id == organization_id]
        if status:
            conditions.append(Project.status == status)
        if stage:
            conditions.append(Project.current_stage == stage)
        if client_id:
            conditions.append(Project.client_id == client_id)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Project.name).like(pattern),
                    func.lower(Project.reference).like(pattern),
                    func.lower(Client.first_name).like(pattern),
                    func.lower(Client.last_name).like(pattern),
                    func.lower(func.coalesce(Client.company, "")).like(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(Project).join(Client, Project.client_id == Client.id)
        total = int((await self.session.exec(count_stmt.where(*conditions))).one())

        column = SORTABLE_FIELDS.get(sort_field, Project.created_at)
        order = column.asc() if sort_direction == "asc" else column.desc()
        stmt = select(Project, Client).join(Client, Project.client_id == Client.id).where(*conditions).order_by(order)
        stmt = AsyncQueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return list(result.all()), total

    async def list_for_portal(self, client_id: str) -> List[Project]:
        stmt = (
            select(Project)
            .where(
                Project.client_id == client_id,
                Project.status.in_([ProjectStatus.ACTIVE.value, ProjectStatus.ON_HOLD.value]),
            )
            .order_by(Project.updated_at.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_by_monday_item(self, monday_item_id: str) -> Optional[Project]:
        result = await self.session.exec(select(Project).where(Project.monday_item_id == monday_item_id))
        return result.first()

    async def list_by_monday_item(self, monday_item_id: str) -> List[Project]:
        result = await self.session.exec(select(Project).where(Project.monday_item_id == monday_item_id))
        return list(result.all())

    # Members

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        self.session.add(member)
        await self.session.commit()
        await self.session.refresh(member)
        return member

    async def get_member(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        stmt = select(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_members(self, project_id: str) -> List[Tuple[ProjectMember, User]]:
        stmt = (
            select(ProjectMember, User)
            .join(User, ProjectMember.user_id == User.id)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.created_at)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_by_ids(self, project_ids: Sequence[str]) -> List[Project]:
        if not project_ids:
            return []
        result = await self.session.exec(select(Project).where(Project.id.in_(list(project_ids))))
        return list(result.all())
