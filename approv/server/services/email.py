"""
Email Service.

Sends transactional email through the Resend HTTP API. Every ``send_*``
method returns a boolean and logs failures instead of raising, so callers can
fire and forget.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

import httpx

from approv.core.audit import mask_value
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ApprovalStatus
from approv.server.core.config import settings

from .templates import TemplateContent, render_email, render_template

logger = get_logger(__name__)

URGENT_AFTER_DAYS = 7


@dataclass(frozen=True)
class Branding:
    """Organization details shown in email headers and footers."""

    name: str
    primary_color: str = "#1F4E79"
    footer_text: Optional[str] = None


def _format_date(value: datetime) -> str:
    return value.strftime("%d %B %Y")


class EmailService:
    """Thin wrapper around the Resend ``/emails`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        app_url: str,
        api_url: str = "https://api.resend.com",
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.from_address = f"Approv <{from_email}>"
        self.app_url = app_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(
        self,
        to: str | Sequence[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> Optional[str]:
        """
        Send one email.

        Args:
            to: Recipient address or addresses
            subject: Subject line
            html_body: HTML body
            text_body: Optional plain text body

        Returns:
            The provider message id, or None if the email was not sent
        """
        recipients = [to] if isinstance(to, str) else list(to)
        if not recipients:
            return None
        if not self.configured:
            logger.warning(f"Email skipped (RESEND_API_KEY not set): {subject}")
            return None

        payload: dict[str, object] = {
            "from": self.from_address,
            "to": recipients,
            "subject": subject,
            "html": html_body,
            "headers": {"X-Entity-Ref-ID": uuid.uuid4().hex},
        }
        if text_body:
            payload["text"] = text_body

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/emails",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
                )
                response.raise_for_status()
                message_id = response.json().get("id") or uuid.uuid4().hex
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend rejected email '{subject}' (HTTP {e.response.status_code}): {e.response.text}")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Resend email '{subject}' failed (network error): {e}")
            return None

        logger.info(
            f"Email sent: {subject}",
            extra={"message_id": message_id, "recipients": [mask_value(r) for r in recipients]},
        )
        return message_id

    async def send_approval_request(
        self,
        *,
        to: str,
        client_name: str,
        project_name: str,
        stage_label: str,
        approval_url: str,
        expires_at: datetime,
        branding: Branding,
    ) -> bool:
        subject = f"Approval Required: {project_name} - {stage_label}"
        context = dict(
            branding=branding,
            client_name=client_name,
            project_name=project_name,
            stage_label=stage_label,
            approval_url=approval_url,
            expires_on=_format_date(expires_at),
        )
        html_body = render_email("approval_request.html", **context)
        text = render_email("approval_request.txt", **context)
        return await self.send(to, subject, html_body, text) is not None

    async def send_approval_confirmation(
        self,
        *,
        to: str,
        client_name: str,
        project_name: str,
        stage_label: str,
        status: ApprovalStatus,
        branding: Branding,
    ) -> bool:
        if status == ApprovalStatus.APPROVED:
            subject = f"Approved: {project_name} - {stage_label}"
            outcome = "Thank you for approving"
        else:
            subject = f"Feedback received: {project_name} - {stage_label}"
            outcome = "Thank you for your feedback on"
        html_body = render_email(
            "approval_confirmation.html",
            branding=branding,
            client_name=client_name,
            project_name=project_name,
            stage_label=stage_label,
            outcome=outcome,
        )
        return await self.send(to, subject, html_body) is not None

    async def send_approval_reminder(
        self,
        *,
        to: str,
        client_name: str,
        project_name: str,
        stage_label: str,
        approval_url: str,
        days_pending: int,
        expires_at: datetime,
        branding: Branding,
    ) -> bool:
        urgent = days_pending >= URGENT_AFTER_DAYS
        prefix = "⚠️ Urgent: " if urgent else ""
        subject = f"{prefix}Reminder: Approval Needed for {project_name}"
        html_body = render_email(
            "approval_reminder.html",
            branding=branding,
            client_name=client_name,
            project_name=project_name,
            stage_label=stage_label,
            approval_url=approval_url,
            days_pending=days_pending,
            urgent=urgent,
            expires_on=_format_date(expires_at),
        )
        return await self.send(to, subject, html_body) is not None

    async def send_team_notification(
        self,
        *,
        to: Sequence[str],
        client_name: str,
        project_name: str,
        stage_label: str,
        status: ApprovalStatus,
        notes: Optional[str],
        project_url: str,
        branding: Branding,
    ) -> bool:
        verb = "approved" if status == ApprovalStatus.APPROVED else "requested changes to"
        subject = f"{client_name} {verb} {stage_label} - {project_name}"
        html_body = render_email(
            "team_notification.html",
            branding=branding,
            client_name=client_name,
            project_name=project_name,
            stage_label=stage_label,
            verb=verb,
            notes=notes,
            project_url=project_url,
        )
        return await self.send(list(to), subject, html_body) is not None

    async def send_templated(
        self,
        *,
        to: str | Sequence[str],
        template: TemplateContent,
        data: Mapping[str, Any],
    ) -> Optional[str]:
        """
        Render a stored or built-in template and send it. Returns the message id.

        Raises:
            jinja2.TemplateError: When the template cannot be rendered
        """
        subject, body_html, body_text = render_template(template, data)
        return await self.send(to, subject, body_html, body_text)

    def approval_url(self, token: str) -> str:
        return f"{self.app_url}/approve/{token}"

    def project_url(self, project_id: str) -> str:
        return f"{self.app_url}/projects/{project_id}"


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        email = settings.email
        _email_service = EmailService(
            api_key=email.api_key,
            from_email=email.from_email,
            app_url=settings.app_url,
            api_url=email.api_url,
        )
    return _email_service
