"""
Organization repository.

Data access for tenant accounts.
"""

from __future__ import annotations

from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.organizations import Organization
from .base import SqlModelRepository


class OrganizationRepository(SqlModelRepository[Organization]):
    """Repository for organization data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Organization)

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        result = await self.session.exec(select(Organization).where(Organization.slug == slug))
        return result.one_or_none()

    async def get_by_monday_state(self, state: str) -> Optional[Organization]:
        result = await self.session.exec(select(Organization).where(Organization.monday_oauth_state == state))
        return result.one_or_none()

    async def get_by_dropbox_state(self, state: str) -> Optional[Organization]:
        result = await self.session.exec(select(Organization).where(Organization.dropbox_oauth_state == state))
        return result.one_or_none()
