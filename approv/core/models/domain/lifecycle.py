"""Approval lifecycle rules.

An approval starts ``PENDING`` and moves to ``APPROVED`` or
``CHANGES_REQUESTED`` when the client responds. ``EXPIRED`` is never written:
it is the effective status of a pending approval whose ``expires_at`` has
passed. A ``CHANGES_REQUESTED`` approval can be resubmitted, which sends it
back to ``PENDING`` with a fresh expiry.

The helpers here mutate entity instances in place and raise
:class:`~approv.core.errors.AppError` subclasses when a transition is not
allowed. Persisting the result is the caller's job.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from approv.core.errors import ValidationError

from .enums import ApprovalAction, ApprovalStatus, ReminderType

if TYPE_CHECKING:
    from approv.core.database.entities.approvals import Approval

APPROVAL_TOKEN_PATTERN = re.compile(r"^c[a-z0-9]{24}$")
UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

MIN_CHANGE_NOTES_LENGTH = 10
MAX_NOTES_LENGTH = 2000

# (days pending, reminder type, minimum count, maximum count exclusive)
SCHEDULED_REMINDER_THRESHOLDS: tuple[tuple[int, ReminderType, int, int], ...] = (
    (3, ReminderType.FIRST, 0, 1),
    (7, ReminderType.SECOND, 1, 2),
    (14, ReminderType.ESCALATION, 2, 5),
)
REMINDER_COOLDOWN = timedelta(hours=24)

RESPONSE_MESSAGES = {
    ApprovalStatus.APPROVED: "Thank you for your approval!",
    ApprovalStatus.CHANGES_REQUESTED: "Your feedback has been submitted",
}


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_token(token: Optional[str]) -> bool:
    """Check that ``token`` has the shape of an approval token (cuid or UUID)."""
    if not token:
        return False
    return bool(APPROVAL_TOKEN_PATTERN.match(token) or UUID_PATTERN.match(token))


def expiry_from(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def is_expired(approval: "Approval", now: Optional[datetime] = None) -> bool:
    return approval.expires_at < (now or utc_now())


def effective_status(approval: "Approval", now: Optional[datetime] = None) -> ApprovalStatus:
    """Stored status, or ``EXPIRED`` for a pending approval past its expiry."""
    status = ApprovalStatus(approval.status)
    if status == ApprovalStatus.PENDING and is_expired(approval, now):
        return ApprovalStatus.EXPIRED
    return status


def pending_since(approval: "Approval") -> datetime:
    """When the current round of the approval was sent to the client."""
    return approval.resubmitted_at or approval.created_at


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def days_pending(approval: "Approval", now: Optional[datetime] = None) -> int:
    return math.floor(hours_between(pending_since(approval), now or utc_now()) / 24)


def days_open(approval: "Approval", now: Optional[datetime] = None) -> int:
    """Whole days since the approval was first created, across resubmissions."""
    return math.floor(hours_between(approval.created_at, now or utc_now()) / 24)


def should_track_view(approval: "Approval", now: Optional[datetime] = None) -> bool:
    return approval.status == ApprovalStatus.PENDING and not is_expired(approval, now)


def ensure_can_respond(approval: "Approval", now: Optional[datetime] = None) -> None:
    """Reject a response unless the approval is pending and unexpired.

    The status check runs before the expiry check, so an answered approval
    reports ``ALREADY_RESPONDED`` even after it would have expired.
    """
    if approval.status != ApprovalStatus.PENDING:
        raise ValidationError("This approval has already been responded to", code="ALREADY_RESPONDED")
    if is_expired(approval, now):
        raise ValidationError("This approval request has expired", code="APPROVAL_EXPIRED")


def validate_response_notes(action: ApprovalAction, notes: Optional[str]) -> Optional[str]:
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Notes must be at most {MAX_NOTES_LENGTH} characters",
            details={"notes": f"Must be at most {MAX_NOTES_LENGTH} characters"},
        )
    if action == ApprovalAction.REQUEST_CHANGES and len((notes or "").strip()) < MIN_CHANGE_NOTES_LENGTH:
        raise ValidationError(
            "Please provide at least 10 characters of feedback when requesting changes",
            details={"notes": "Please provide at least 10 characters of feedback when requesting changes"},
        )
    return notes or None


def apply_response(
    approval: "Approval",
    action: ApprovalAction,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ApprovalStatus:
    """Record the client's response on ``approval`` and return the new status."""
    now = now or utc_now()
    ensure_can_respond(approval, now)
    notes = validate_response_notes(action, notes)

    new_status = ApprovalStatus.APPROVED if action == ApprovalAction.APPROVE else ApprovalStatus.CHANGES_REQUESTED
    approval.status = new_status.value
    approval.responded_at = now
    approval.response_notes = notes
    approval.response_time_hours = hours_between(pending_since(approval), now)
    return new_status


def ensure_can_resubmit(approval: "Approval") -> None:
    if approval.status != ApprovalStatus.CHANGES_REQUESTED:
        raise ValidationError(
            "Only approvals with requested changes can be resubmitted",
            code="INVALID_STATE_TRANSITION",
            details={"status": approval.status},
        )


def apply_resubmission(
    approval: "Approval",
    expires_in_days: int,
    now: Optional[datetime] = None,
    deliverable_url: Optional[str] = None,
    deliverable_type: Optional[str] = None,
    deliverable_name: Optional[str] = None,
) -> None:
    """Send a ``CHANGES_REQUESTED`` approval back to the client as a new revision."""
    now = now or utc_now()
    ensure_can_resubmit(approval)

    approval.status = ApprovalStatus.PENDING.value
    approval.responded_at = None
    approval.response_notes = None
    approval.response_time_hours = None
    approval.expires_at = expiry_from(now, expires_in_days)
    approval.resubmitted_at = now
    approval.revision = (approval.revision or 1) + 1
    approval.reminder_count = 0
    approval.last_reminder_at = None

    if deliverable_url is not None:
        approval.deliverable_url = deliverable_url
    if deliverable_type is not None:
        approval.deliverable_type = deliverable_type
    if deliverable_name is not None:
        approval.deliverable_name = deliverable_name


def manual_reminder_type(reminder_count: int) -> ReminderType:
    """Reminder type for a reminder sent by hand, based on how many went before."""
    if reminder_count == 0:
        return ReminderType.FIRST
    if reminder_count == 1:
        return ReminderType.SECOND
    return ReminderType.ESCALATION


def scheduled_reminder_type(days: int, reminder_count: int) -> Optional[ReminderType]:
    """Reminder the scheduled job owes an approval pending for ``days`` days, if any."""
    for threshold, reminder_type, min_count, max_count in SCHEDULED_REMINDER_THRESHOLDS:
        if days >= threshold and min_count <= reminder_count < max_count:
            return reminder_type
    return None


def reminded_recently(approval: "Approval", now: Optional[datetime] = None) -> bool:
    if approval.last_reminder_at is None:
        return False
    return (now or utc_now()) - approval.last_reminder_at < REMINDER_COOLDOWN
