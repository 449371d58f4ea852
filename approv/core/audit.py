"""
Audit Logging and PII Redaction.

Every state change worth keeping a record of goes through :func:`log_audit`.
It writes an :class:`~approv.core.database.entities.audit_logs.AuditLog` row
and emits a log/Logfire event. Personal data and secrets are redacted with
:func:`safe_log` before anything is logged or persisted.

Audit writes never raise: a failure is logged and the caller carries on.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.database.entities.audit_logs import AuditLog
from approv.core.logging_config import get_logger
from approv.core.monitoring import log_audit_event

logger = get_logger(__name__)

REDACTED = "[REDACTED]"

SENSITIVE_KEY_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"password",
        r"token",
        r"secret",
        r"api[_-]?key",
        r"auth",
        r"email",
        r"phone",
        r"mobile",
        r"address",
        r"ssn",
        r"credit",
        r"card",
        r"cvv",
        r"cookie",
        r"session",
    )
]


def is_sensitive_key(key: str) -> bool:
    return any(pattern.search(key) for pattern in SENSITIVE_KEY_PATTERNS)


def safe_log(data: Any) -> Any:
    """Return a copy of ``data`` with sensitive values replaced by ``[REDACTED]``.

    Dictionaries are walked recursively and lists element by element. Any key
    that looks like it holds a secret or personal data is redacted regardless
    of its value. Scalars are returned unchanged.
    """
    if isinstance(data, dict):
        return {
            key: REDACTED if isinstance(key, str) and is_sensitive_key(key) else safe_log(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [safe_log(item) for item in data]
    return data


def mask_value(value: str, visible: int = 4) -> str:
    """Mask the middle of ``value``, keeping ``visible`` characters at each end.

    Short values are masked entirely. The masked run is capped at 8 characters
    so the output does not reveal the original length.
    """
    if len(value) <= visible * 2:
        return "*" * len(value)
    hidden = min(len(value) - visible * 2, 8)
    return f"{value[:visible]}{'*' * hidden}{value[-visible:]}"


@dataclass
class AuditEntry:
    """One auditable action."""

    action: str
    entity_type: str
    entity_id: str
    organization_id: Optional[str] = None
    user_id: Optional[str] = None
    project_id: Optional[str] = None
    approval_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    previous_state: Optional[Dict[str, Any]] = None
    new_state: Optional[Dict[str, Any]] = None


async def log_audit(session: AsyncSession, entry: AuditEntry) -> Optional[AuditLog]:
    """Record ``entry`` in the application log and, for tenant actions, the database.

    Args:
        session: Session used to persist the audit row
        entry: The action to record

    Returns:
        The persisted AuditLog, or None when nothing was stored
    """
    safe_metadata = safe_log(entry.metadata)
    logger.info(
        f"Audit: {entry.action}",
        extra={
            "audit_action": entry.action,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "organization_id": entry.organization_id,
            "user_id": entry.user_id,
            "audit_metadata": safe_metadata,
        },
    )
    log_audit_event(entry.action, entry.entity_type, entry.entity_id, safe_metadata)

    if not entry.organization_id:
        return None

    row = AuditLog(
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        organization_id=entry.organization_id,
        user_id=entry.user_id,
        project_id=entry.project_id,
        approval_id=entry.approval_id,
        ip_address=entry.ip_address,
        user_agent=(entry.user_agent or "")[:500] or None,
    )
    row.set_metadata_dict(safe_metadata)
    row.set_previous_state_dict(safe_log(entry.previous_state) if entry.previous_state is not None else None)
    row.set_new_state_dict(safe_log(entry.new_state) if entry.new_state is not None else None)

    try:
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return row
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to write audit log for {entry.action}: {e}", exc_info=True)
        return None
