"""
Audit log entity.

Append-only trail of who did what to which entity. The three JSON payloads
are stored as text and are redacted before they get here.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, Text
from sqlmodel import Field

from approv.core.models.domain.lifecycle import utc_now

from ..base import Base, generate_id


def _loads(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    return json.loads(raw) if raw else None


def _dumps(data: Optional[Dict[str, Any]]) -> Optional[str]:
    return json.dumps(data, default=str) if data is not None else None


class AuditLog(Base, table=True):
    """Entity for an audit trail entry.

    Table: audit_logs
    """

    __tablename__ = "audit_logs"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    action: str = Field(max_length=100, index=True)
    entity_type: str = Field(max_length=50, index=True)
    entity_id: str = Field(max_length=64, index=True)

    organization_id: Optional[str] = Field(default=None, foreign_key="organizations.id", max_length=64, index=True)
    user_id: Optional[str] = Field(default=None, max_length=64)
    project_id: Optional[str] = Field(default=None, max_length=64, index=True)
    approval_id: Optional[str] = Field(default=None, max_length=64)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    # ``metadata`` is reserved on declarative classes, hence the attribute name.
    metadata_json: Optional[str] = Field(default=None, sa_column=Column("metadata", Text, nullable=True))
    previous_state: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    new_state: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utc_now, index=True)

    def get_metadata_dict(self) -> Optional[Dict[str, Any]]:
        return _loads(self.metadata_json)

    def set_metadata_dict(self, data: Optional[Dict[str, Any]]) -> None:
        self.metadata_json = _dumps(data)

    def get_previous_state_dict(self) -> Optional[Dict[str, Any]]:
        return _loads(self.previous_state)

    def set_previous_state_dict(self, data: Optional[Dict[str, Any]]) -> None:
        self.previous_state = _dumps(data)

    def get_new_state_dict(self) -> Optional[Dict[str, Any]]:
        return _loads(self.new_state)

    def set_new_state_dict(self, data: Optional[Dict[str, Any]]) -> None:
        self.new_state = _dumps(data)

    def __repr__(self) -> str:
        return f"AuditLog(id={self.id}, action={self.action}, entity={self.entity_type}:{self.entity_id})"
