"""
Reminder repository.

Data access for the record of reminders sent per approval.
"""

from __future__ import annotations

from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.reminders import Reminder
from .base import SqlModelRepository


class ReminderRepository(SqlModelRepository[Reminder]):
    """Repository for reminder data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Reminder)

    async def list_for_approval(self, approval_id: str) -> List[Reminder]:
        stmt = select(Reminder).where(Reminder.approval_id == approval_id).order_by(Reminder.created_at)
        result = await self.session.exec(stmt)
        return list(result.all())
