"""
Notifications API Endpoints.

This module provides team-triggered notifications (templated emails, approval
reminders and Slack messages), the current user's notification preferences
and the organization's email templates.
"""

from typing import List

from fastapi import APIRouter, Depends

from approv.server.middleware.rate_limit import email_rate_limit, reminder_rate_limit, slack_rate_limit
from approv.server.schemas.common import ApiResponse
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
from approv.server.services import notifications as notification_svc
from approv.server.services.deps import AdminDep, CurrentUserDep, EmailServiceDep, ReposDep, SlackServiceDep

router = APIRouter()


@router.post(
    "/email",
    response_model=ApiResponse[EmailNotificationResult],
    summary="Send Email",
    description="Render an email template with the given data and send it.",
    response_description="The provider's message id.",
    responses={
        404: {"description": "Template not found"},
        502: {"description": "Email provider rejected the message"},
    },
    dependencies=[Depends(email_rate_limit)],
)
async def send_email(body: EmailNotification, repos: ReposDep, auth: CurrentUserDep, email_service: EmailServiceDep):
    return ApiResponse(data=await notification_svc.send_email(repos, auth, body, email_service))


@router.post(
    "/reminder",
    response_model=ApiResponse[ReminderNotificationResult],
    summary="Send Approval Reminder",
    description="Email the client a reminder for a pending approval and record it.",
    response_description="The recorded reminder.",
    responses={404: {"description": "Approval not found or not pending"}},
    dependencies=[Depends(reminder_rate_limit)],
)
async def send_reminder(
    body: ReminderNotification, repos: ReposDep, auth: CurrentUserDep, email_service: EmailServiceDep
):
    return ApiResponse(data=await notification_svc.send_reminder(repos, auth, body, email_service))


@router.post(
    "/slack",
    response_model=ApiResponse[SlackNotificationResult],
    summary="Send Slack Message",
    description="Post a message to the organization's Slack channel.",
    response_description="The channel and message timestamp.",
    responses={400: {"description": "Slack is not configured"}},
    dependencies=[Depends(slack_rate_limit)],
)
async def send_slack(body: SlackNotification, auth: CurrentUserDep, slack_service: SlackServiceDep):
    return ApiResponse(data=await notification_svc.send_slack(auth, body, slack_service))


@router.get(
    "/preferences",
    response_model=ApiResponse[NotificationPreferences],
    summary="Get Notification Preferences",
    response_description="The current user's preferences.",
)
async def get_preferences(auth: CurrentUserDep):
    return ApiResponse(data=notification_svc.preferences_of(auth.user))


@router.patch(
    "/preferences",
    response_model=ApiResponse[NotificationPreferences],
    summary="Update Notification Preferences",
    description="Change any of the current user's preferences. Omitted fields are left as they are.",
    response_description="The updated preferences.",
)
async def update_preferences(body: NotificationPreferencesUpdate, repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await notification_svc.update_preferences(repos, auth, body))


@router.get(
    "/templates",
    response_model=ApiResponse[List[EmailTemplateView]],
    summary="List Email Templates",
    description="The organization's customized email templates. Admins only.",
    response_description="The templates.",
    responses={403: {"description": "Admin role required"}},
)
async def list_templates(repos: ReposDep, auth: AdminDep):
    return ApiResponse(data=await notification_svc.list_templates(repos, auth))
