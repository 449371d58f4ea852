"""Domain enums and lifecycle rules shared across Approv.

These types are shared between:

- the persistence layer (entity status columns store the enum values),
- the approval workflow and reminder job,
- API schemas.
"""

from .enums import (
    STAGE_LABELS,
    ApprovalAction,
    ApprovalStage,
    ApprovalStatus,
    DeliverableType,
    OrganizationPlan,
    ProjectMemberRole,
    ProjectStatus,
    ReminderChannel,
    ReminderType,
    UserRole,
)
from .lifecycle import (
    apply_response,
    apply_resubmission,
    days_pending,
    effective_status,
    is_expired,
    is_valid_token,
    utc_now,
)

__all__ = [
    "STAGE_LABELS",
    "ApprovalAction",
    "ApprovalStage",
    "ApprovalStatus",
    "DeliverableType",
    "OrganizationPlan",
    "ProjectMemberRole",
    "ProjectStatus",
    "ReminderChannel",
    "ReminderType",
    "UserRole",
    "apply_response",
    "apply_resubmission",
    "days_pending",
    "effective_status",
    "is_expired",
    "is_valid_token",
    "utc_now",
]
