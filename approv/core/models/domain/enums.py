"""Domain enums for Approv."""

from __future__ import annotations

from enum import Enum


class ApprovalStatus(str, Enum):
    """
    Status of an approval request.

    ``EXPIRED`` is never stored. It is derived at read time for a pending
    approval whose expiry has passed.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    EXPIRED = "EXPIRED"


class ApprovalAction(str, Enum):
    """Client response to an approval request."""

    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"


class ApprovalStage(str, Enum):
    """RIBA-style project stages a deliverable can be sent for."""

    INITIAL_DRAWINGS = "INITIAL_DRAWINGS"
    DETAILED_DESIGN = "DETAILED_DESIGN"
    PLANNING_PACK = "PLANNING_PACK"
    FINAL_APPROVAL = "FINAL_APPROVAL"


STAGE_LABELS: dict[str, str] = {
    ApprovalStage.INITIAL_DRAWINGS.value: "Initial Drawings",
    ApprovalStage.DETAILED_DESIGN.value: "Detailed Design",
    ApprovalStage.PLANNING_PACK.value: "Planning Pack",
    ApprovalStage.FINAL_APPROVAL.value: "Final Approval",
}


class DeliverableType(str, Enum):
    PDF = "PDF"
    IMAGE = "IMAGE"
    LINK = "LINK"


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class UserRole(str, Enum):
    """Organization-wide role of a user."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ProjectMemberRole(str, Enum):
    LEAD = "LEAD"
    MEMBER = "MEMBER"


class OrganizationPlan(str, Enum):
    FREE = "FREE"
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"


class ReminderType(str, Enum):
    FIRST = "FIRST"
    SECOND = "SECOND"
    ESCALATION = "ESCALATION"
    CUSTOM = "CUSTOM"


class ReminderChannel(str, Enum):
    EMAIL = "EMAIL"
    SLACK = "SLACK"
    SMS = "SMS"
