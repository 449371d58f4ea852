"""
Client repository.

Data access for an organization's clients and portal token lookups.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.clients import Client
from .base import SqlModelRepository


class ClientRepository(SqlModelRepository[Client]):
    """Repository for client data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Client)

    async def get_for_organization(self, client_id: str, organization_id: str) -> Optional[Client]:
        stmt = select(Client).where(Client.id == client_id, Client.organization_id == organization_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(
        self, organization_id: str, email: str, exclude_id: Optional[str] = None
    ) -> Optional[Client]:
        """Find a client of the organization by email, case-insensitively.

        Args:
            organization_id: Owning organization
            email: Email address to look for
            exclude_id: Client id to ignore (the one being updated)

        Returns:
            Matching client or None
        """
        stmt = select(Client).where(
            Client.organization_id == organization_id,
            func.lower(Client.email) == email.lower(),
        )
        if exclude_id:
            stmt = stmt.where(Client.id != exclude_id)
        result = await self.session.exec(stmt)
        return result.first()

    async def list_by_organization(self, organization_id: str) -> List[Client]:
        stmt = select(Client).where(Client.organization_id == organization_id).order_by(Client.created_at.desc())
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_by_portal_token(self, portal_token: str) -> Optional[Client]:
        result = await self.session.exec(select(Client).where(Client.portal_token == portal_token))
        return result.one_or_none()

    async def touch_portal_access(self, client_id: str, when: datetime) -> None:
        await self.session.execute(update(Client).where(Client.id == client_id).values(last_portal_access=when))
        await self.session.commit()
