"""
Notification Service.

Team-triggered emails, reminders and Slack messages, the user's
notification preferences and the organization's email templates.
"""

from typing import List

from jinja2 import TemplateError

from approv.core.database.entities.users import User
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import ExternalServiceError, NotFoundError, ValidationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ReminderChannel
from approv.server.schemas.notifications import (
    EmailNotification,
    EmailNotificationResult,
    EmailTemplateView,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    ReminderNotification,
    ReminderNotificationResult,
    SlackNotification,
    SlackNotificationResult,
)

from .approvals import remind_client
from .auth import AuthContext
from .email import EmailService
from .slack import SlackService
from .templates import resolve_template

logger = get_logger(__name__)

PREFERENCE_FIELDS = {
    "email": "email_notifications",
    "slack": "slack_notifications",
    "daily_digest": "daily_digest",
}


async def send_email(
    repos: SqlRepoBundle, auth: AuthContext, body: EmailNotification, email_service: EmailService
) -> EmailNotificationResult:
    """
    Render a template with ``body.data`` and send it.

    Raises:
        NotFoundError: When no template exists for the slug
        ValidationError: When the organization's template does not render
        ExternalServiceError: When the email provider did not accept the message
    """
    template = await resolve_template(repos.email_templates, auth.organization.id, body.template)
    if template is None:
        raise NotFoundError("Email template")

    try:
        message_id = await email_service.send_templated(to=body.to, template=template, data=body.data)
    except TemplateError as e:
        logger.warning(f"Email template {body.template} could not be rendered: {e}")
        raise ValidationError(f"Email template '{body.template}' could not be rendered") from e
    if message_id is None:
        raise ExternalServiceError("Resend", "Email could not be sent")

    logger.info("Email notification sent", extra={"template": body.template, "user_id": auth.user.id})
    return EmailNotificationResult(message_id=message_id, status="sent")


async def send_reminder(
    repos: SqlRepoBundle, auth: AuthContext, body: ReminderNotification, email_service: EmailService
) -> ReminderNotificationResult:
    _, reminder = await remind_client(
        repos, auth, body.approval_id, email_service, reminder_type=body.reminder_type
    )
    return ReminderNotificationResult(
        reminder_id=reminder.id,
        sent_via=[ReminderChannel(reminder.channel).value.lower()],
        timestamp=reminder.sent_at,
    )


async def send_slack(
    auth: AuthContext, body: SlackNotification, slack_service: SlackService
) -> SlackNotificationResult:
    """
    Post ``body.message`` to the organization's Slack channel.

    Raises:
        ValidationError: ``SLACK_NOT_CONFIGURED`` without a bot token and channel
    """
    organization = auth.organization
    if not organization.slack_bot_token or not organization.slack_channel_id:
        raise ValidationError("Slack is not configured for this organization", code="SLACK_NOT_CONFIGURED")

    message = await slack_service.post_message(
        organization.slack_bot_token, organization.slack_channel_id, body.message
    )
    logger.info(
        "Slack notification sent",
        extra={"organization_id": organization.id, "approval_id": body.approval_id, "user_id": auth.user.id},
    )
    return SlackNotificationResult(channel=message.channel, ts=message.ts)


def preferences_of(user: User) -> NotificationPreferences:
    return NotificationPreferences(
        email=user.email_notifications,
        slack=user.slack_notifications,
        daily_digest=user.daily_digest,
    )


async def update_preferences(
    repos: SqlRepoBundle, auth: AuthContext, body: NotificationPreferencesUpdate
) -> NotificationPreferences:
    user = auth.user
    updates = {PREFERENCE_FIELDS[name]: value for name, value in body.model_dump(exclude_none=True).items()}
    for column, value in updates.items():
        setattr(user, column, value)
    if updates:
        user = await repos.users.update(user)
    logger.info("Notification preferences updated", extra={"user_id": user.id, "updates": updates})
    return preferences_of(user)


async def list_templates(repos: SqlRepoBundle, auth: AuthContext) -> List[EmailTemplateView]:
    templates = await repos.email_templates.list_by_organization(auth.organization.id)
    return [EmailTemplateView.model_validate(template) for template in templates]
