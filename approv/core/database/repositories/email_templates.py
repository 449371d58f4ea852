"""
Email template repository.

Data access for organization-specific email template overrides.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.email_templates import EmailTemplate
from .base import SqlModelRepository


class EmailTemplateRepository(SqlModelRepository[EmailTemplate]):
    """Repository for email template data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EmailTemplate)

    async def get_active(self, organization_id: str, slug: str) -> Optional[EmailTemplate]:
        stmt = select(EmailTemplate).where(
            EmailTemplate.organization_id == organization_id,
            EmailTemplate.slug == slug,
            EmailTemplate.is_active == True,  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_by_organization(self, organization_id: str) -> List[EmailTemplate]:
        stmt = (
            select(EmailTemplate)
            .where(EmailTemplate.organization_id == organization_id)
            .order_by(EmailTemplate.name)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
