"""
Email template entity.

Organizations may override the built-in email templates per ``slug``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


class EmailTemplate(Base, table=True):
    """Entity for an organization email template.

    Table: email_templates
    """

    __tablename__ = "email_templates"
    __table_args__ = (UniqueConstraint("organization_id", "slug", name="uq_email_templates_organization_slug"),)

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", max_length=64, index=True)

    name: str = Field(max_length=100)
    slug: str = Field(max_length=100)
    subject: str = Field(max_length=300)
    body_html: str
    body_text: Optional[str] = Field(default=None)
    is_custom: bool = Field(default=False)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"EmailTemplate(id={self.id}, slug={self.slug}, organization_id={self.organization_id})"
