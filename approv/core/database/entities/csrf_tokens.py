"""
CSRF token entity.

Only the SHA-256 hash of an issued token is stored.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class CsrfToken(Base, table=True):
    """Entity for an issued CSRF token.

    Table: csrf_tokens
    """

    __tablename__ = "csrf_tokens"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    token: str = Field(max_length=64, unique=True, index=True)
    session_id: Optional[str] = Field(default=None, max_length=128)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"CsrfToken(id={self.id}, expires_at={self.expires_at})"
