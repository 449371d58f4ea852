"""
CSRF token repository.

Stores hashes of issued CSRF tokens and purges expired ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.csrf_tokens import CsrfToken
from .base import SqlModelRepository


class CsrfTokenRepository(SqlModelRepository[CsrfToken]):
    """Repository for CSRF token data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CsrfToken)

    async def get_by_hash(self, token_hash: str) -> Optional[CsrfToken]:
        result = await self.session.exec(select(CsrfToken).where(CsrfToken.token == token_hash))
        return result.one_or_none()

    async def delete_expired(self, now: datetime) -> int:
        result = await self.session.execute(delete(CsrfToken).where(CsrfToken.expires_at < now))
        await self.session.commit()
        return result.rowcount
