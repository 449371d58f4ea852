"""
Webhook Service.

Signature checks and event handling for inbound Monday.com and Clerk
webhooks. Both providers sign the raw request body; the JSON is only
trusted after the signature matches.
"""

import base64
import hashlib
import hmac
from typing import Any, Dict, Optional

from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ProjectStatus
from approv.core.models.domain.lifecycle import utc_now

from .auth import primary_email

logger = get_logger(__name__)

MONDAY_STATUS_KEYWORDS = (
    (("complete", "done"), ProjectStatus.COMPLETED),
    (("hold", "pause"), ProjectStatus.ON_HOLD),
    (("cancel",), ProjectStatus.CANCELLED),
    (("active", "progress"), ProjectStatus.ACTIVE),
)


def _hmac_base64(key: bytes, content: bytes) -> str:
    return base64.b64encode(hmac.new(key, content, hashlib.sha256).digest()).decode("ascii")


def verify_monday_signature(
    body: bytes, signature: Optional[str], secret: Optional[str], allow_unsigned: bool = False
) -> bool:
    """
    Check the ``Authorization`` header of a Monday.com webhook.

    The header carries the base64 HMAC-SHA256 of the raw body. Requests
    without a signature or without a configured secret are only accepted
    when ``allow_unsigned`` is set (development).
    """
    if not signature or not secret:
        return allow_unsigned
    expected = _hmac_base64(secret.encode("utf-8"), body)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))


def svix_key(secret: str) -> bytes:
    """Signing key of a ``whsec_...`` secret: base64 of the part after the first ``_``."""
    _, _, encoded = secret.partition("_")
    return base64.b64decode(encoded)


def verify_svix_signature(
    body: bytes,
    svix_id: Optional[str],
    svix_timestamp: Optional[str],
    svix_signature: Optional[str],
    secret: Optional[str],
    allow_unsigned: bool = False,
) -> bool:
    """
    Check a Clerk (Svix) webhook.

    The signed content is ``{id}.{timestamp}.{body}``. ``svix-signature``
    holds space separated ``v1,<base64>`` entries; any match is accepted.
    """
    if not (svix_id and svix_timestamp and svix_signature and secret):
        return allow_unsigned
    try:
        key = svix_key(secret)
    except ValueError as e:
        logger.error(f"Clerk webhook secret is not valid base64: {e}")
        return False

    content = f"{svix_id}.{svix_timestamp}.".encode("utf-8") + body
    expected = _hmac_base64(key, content).encode("utf-8")
    for entry in svix_signature.split(" "):
        _, _, candidate = entry.partition(",")
        if candidate and hmac.compare_digest(candidate.encode("utf-8"), expected):
            return True
    return False


def project_status_from_label(label: Optional[str]) -> Optional[ProjectStatus]:
    if not label:
        return None
    label = label.lower()
    for keywords, status in MONDAY_STATUS_KEYWORDS:
        if any(keyword in label for keyword in keywords):
            return status
    return None


async def handle_monday_event(repos: SqlRepoBundle, event: Dict[str, Any]) -> None:
    event_type = event.get("type")
    item_id = event.get("pulseId")
    logger.info(
        "Monday.com webhook received",
        extra={"event_type": event_type, "board_id": event.get("boardId"), "pulse_id": item_id},
    )

    if event_type == "create_item":
        logger.info(f"New Monday.com item created: {event.get('pulseName')}", extra={"pulse_id": item_id})
        return
    if event_type not in ("change_column_value", "change_status_column_value") or item_id is None:
        logger.debug(f"Unhandled Monday.com event type: {event_type}")
        return

    project = await repos.projects.get_by_monday_item(str(item_id))
    if project is None:
        logger.debug(f"No project found for Monday item {item_id}")
        return

    now = utc_now()
    if event_type == "change_column_value":
        project.monday_last_sync_at = now
        await repos.projects.update(project)
        logger.info(
            "Project updated from Monday.com", extra={"project_id": project.id, "column_id": event.get("columnId")}
        )
        return

    value = event.get("value") or {}
    label = (value.get("label") or {}).get("text") if isinstance(value, dict) else None
    new_status = project_status_from_label(label)
    if new_status is None or new_status.value == project.status:
        return

    old_status = project.status
    project.status = new_status.value
    project.monday_last_sync_at = now
    if new_status == ProjectStatus.COMPLETED:
        project.completed_at = now
    await repos.projects.update(project)
    logger.info(
        "Project status updated from Monday.com",
        extra={"project_id": project.id, "old_status": old_status, "new_status": new_status.value},
    )


async def handle_clerk_event(repos: SqlRepoBundle, event_type: Optional[str], data: Dict[str, Any]) -> None:
    logger.info("Clerk webhook received", extra={"event_type": event_type})
    external_id = data.get("id")
    if event_type == "user.created":
        logger.info(f"New Clerk user created: {external_id}")
        return
    if event_type not in ("user.updated", "user.deleted") or not external_id:
        return

    user = await repos.users.get_by_external_id(external_id)
    if user is None:
        logger.debug(f"No local user for Clerk user {external_id}")
        return

    if event_type == "user.deleted":
        user.is_active = False
    else:
        user.email = primary_email(data) or user.email
        user.first_name = data.get("first_name")
        user.last_name = data.get("last_name")
        user.avatar_url = data.get("image_url")
    await repos.users.update(user)
    logger.info(f"Applied {event_type} to user {user.id}")
