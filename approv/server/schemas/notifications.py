"""
Notification API Schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from approv.core.models.domain.enums import ReminderType

from .common import EMAIL_PATTERN, ApiModel

TemplateSlug = Literal["approval_request", "approval_reminder", "approval_confirmation"]


class EmailNotification(ApiModel):
    """Send one templated email."""

    template: TemplateSlug = Field(..., description="Template slug to render.")
    to: str = Field(..., max_length=320, pattern=EMAIL_PATTERN, description="Recipient address.")
    data: Dict[str, Any] = Field(default_factory=dict, description="Values for {{placeholders}}.")


class EmailNotificationResult(ApiModel):
    message_id: str
    status: Literal["sent"]


class ReminderNotification(ApiModel):
    approval_id: str
    reminder_type: ReminderType = ReminderType.CUSTOM


class ReminderNotificationResult(ApiModel):
    reminder_id: str
    sent_via: List[str]
    timestamp: datetime


class SlackNotification(ApiModel):
    message: str = Field(..., min_length=1, max_length=3000)
    approval_id: Optional[str] = None


class SlackNotificationResult(ApiModel):
    channel: str
    ts: Optional[str] = None


class NotificationPreferences(ApiModel):
    email: bool
    slack: bool
    daily_digest: bool


class NotificationPreferencesUpdate(ApiModel):
    email: Optional[bool] = None
    slack: Optional[bool] = None
    daily_digest: Optional[bool] = None


class EmailTemplateView(ApiModel):
    id: str
    name: str
    slug: str
    subject: str
    is_custom: bool
    is_active: bool
    updated_at: datetime
