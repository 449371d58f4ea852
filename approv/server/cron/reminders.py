"""
Approval Reminder Job.

Sends automated reminders for approvals that have been waiting on the client
for a while. Run daily via the ``approv-reminders`` console script.

Schedule, by days pending and reminders already sent:

- 3 days, none sent: FIRST
- 7 days, one sent: SECOND
- 14 days, two to four sent: ESCALATION

An approval is never reminded twice within 24 hours.
"""

import asyncio
import sys
from datetime import datetime
from typing import Optional

from approv.core.database import async_session_maker
from approv.core.database.entities.reminders import Reminder
from approv.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from approv.core.logging_config import get_logger, setup_logging
from approv.core.models.domain.enums import ReminderChannel
from approv.core.models.domain.lifecycle import days_pending, reminded_recently, scheduled_reminder_type, utc_now
from approv.server.services.approvals import branding_for
from approv.server.services.email import EmailService, get_email_service

logger = get_logger(__name__)


async def process_reminders(
    repos: SqlRepoBundle, email_service: EmailService, now: Optional[datetime] = None
) -> int:
    """
    Send every reminder that is due.

    Args:
        repos: Repository bundle bound to an open session
        email_service: Service used to send the reminder emails
        now: Reference time, defaults to the current UTC time

    Returns:
        The number of reminders sent
    """
    now = now or utc_now()
    pending = await repos.approvals.list_open_with_context(now)
    logger.info(f"Found {len(pending)} pending approvals")

    sent_count = 0
    for approval, project, client, organization in pending:
        waited = days_pending(approval, now)
        reminder_type = scheduled_reminder_type(waited, approval.reminder_count)
        if reminder_type is None or reminded_recently(approval, now):
            continue

        sent = await email_service.send_approval_reminder(
            to=client.email,
            client_name=client.first_name,
            project_name=project.name,
            stage_label=approval.stage_label,
            approval_url=email_service.approval_url(approval.token),
            days_pending=waited,
            expires_at=approval.expires_at,
            branding=branding_for(organization),
        )
        if not sent:
            logger.warning(f"Reminder email for approval {approval.id} was not sent")
            continue

        approval.reminder_count += 1
        approval.last_reminder_at = now
        await repos.approvals.update(approval)
        await repos.reminders.create(
            Reminder(
                approval_id=approval.id,
                type=reminder_type.value,
                channel=ReminderChannel.EMAIL.value,
                scheduled_for=now,
                sent_at=now,
            )
        )
        sent_count += 1
        logger.info(
            "Reminder sent",
            extra={"approval_id": approval.id, "type": reminder_type.value, "days_pending": waited},
        )

    logger.info(f"Reminder processing complete: {sent_count} sent")
    return sent_count


async def run() -> int:
    async with async_session_maker() as session:
        return await process_reminders(build_sql_repos_from_session(session=session), get_email_service())


def main() -> None:
    """Console entry point: process reminders once and exit."""
    setup_logging()
    logger.info("Starting reminder processing")
    try:
        asyncio.run(run())
    except Exception as e:
        logger.error(f"Reminder job failed: {e}", exc_info=True)
        sys.exit(1)
    logger.info("Reminder job finished successfully")


if __name__ == "__main__":
    main()
