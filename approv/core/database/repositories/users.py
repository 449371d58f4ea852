"""
User repository.

Data access for team members, including the lookups used by authentication
and the Clerk webhook.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.users import User
from .base import SqlModelRepository


class UserRepository(SqlModelRepository[User]):
    """Repository for user data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_external_id(self, external_id: str) -> Optional[User]:
        """Get a user by their identity provider subject.

        Args:
            external_id: Clerk user id

        Returns:
            User instance or None
        """
        result = await self.session.exec(select(User).where(User.external_id == external_id))
        return result.one_or_none()

    async def list_active_by_organization(self, organization_id: str, email_opt_in_only: bool = False) -> List[User]:
        stmt = select(User).where(User.organization_id == organization_id, User.is_active == True)  # noqa: E712
        if email_opt_in_only:
            stmt = stmt.where(User.email_notifications == True)  # noqa: E712
        result = await self.session.exec(stmt.order_by(User.created_at))
        return list(result.all())

    async def touch_last_login(self, user_id: str, when: datetime) -> None:
        await self.session.execute(update(User).where(User.id == user_id).values(last_login_at=when))
        await self.session.commit()
