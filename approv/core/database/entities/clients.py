"""
Client entity.

Clients are the practice's customers. They receive approval links by email
and may browse their own projects through the portal with ``portal_token``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class Client(Base, table=True):
    """Entity for a client of an organization.

    Table: clients
    """

    __tablename__ = "clients"
    __table_args__ = (UniqueConstraint("organization_id", "email", name="uq_clients_organization_email"),)

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=320)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None)

    # Portal access
    portal_token: Optional[str] = Field(default=None, max_length=64, unique=True, index=True)
    portal_token_expiry: Optional[datetime] = Field(default=None)
    last_portal_access: Optional[datetime] = Field(default=None)

    created_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"Client(id={self.id}, organization_id={self.organization_id})"
