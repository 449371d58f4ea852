"""
Project Report PDF.

Builds the downloadable approval history of a project with the reportlab
canvas API. The report is evidence of what the client approved and when,
so it lists every approval and the project's audit trail.
"""

import io
import textwrap
import time
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from approv.core.database.entities.approvals import Approval
from approv.core.database.entities.audit_logs import AuditLog
from approv.core.database.entities.clients import Client
from approv.core.database.entities.projects import Project
from approv.core.database.entities.users import User
from approv.core.models.domain.enums import ApprovalStatus
from approv.core.models.domain.lifecycle import effective_status, utc_now

MAX_AUDIT_ENTRIES = 100

PRIMARY = HexColor("#16a34a")
HEADER = HexColor("#1f2937")
TEXT = HexColor("#374151")
MUTED = HexColor("#6b7280")
STATUS_COLORS = {
    ApprovalStatus.APPROVED: HexColor("#16a34a"),
    ApprovalStatus.CHANGES_REQUESTED: HexColor("#f59e0b"),
    ApprovalStatus.PENDING: HexColor("#3b82f6"),
    ApprovalStatus.EXPIRED: HexColor("#ef4444"),
}

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def report_id(timestamp_ms: Optional[int] = None) -> str:
    """``RPT-`` followed by the millisecond timestamp in upper-case base 36."""
    value = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36[remainder] + digits
    return f"RPT-{digits or '0'}"


def report_filename(reference: str, when: datetime) -> str:
    return f"{reference}-report-{when.strftime('%Y-%m-%d')}.pdf"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d %B %Y, %H:%M") if value else "N/A"


def format_short_date(value: Optional[datetime]) -> str:
    return value.strftime("%d %b %Y") if value else "N/A"


class _ReportWriter:
    """Top-down text layout on a reportlab canvas with automatic page breaks."""

    left = 20 * mm
    bottom = 20 * mm

    def __init__(self, buf: io.BytesIO, title: str, author: str) -> None:
        self.c = canvas.Canvas(buf, pagesize=A4)
        self.c.setTitle(title)
        self.c.setAuthor(author)
        self.c.setSubject("Project Approval History Report")
        self.c.setCreator("Approv")
        self.width, self.height = A4
        self.y = self.height - 20 * mm

    def new_page(self) -> None:
        self.c.showPage()
        self.y = self.height - 20 * mm

    def _ensure_space(self, needed: float) -> None:
        if self.y - needed < self.bottom:
            self.new_page()

    def line(self, text: str, font: str = "Helvetica", size: float = 10, color=TEXT, center: bool = False) -> None:
        self._ensure_space(size * 1.5)
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        if center:
            self.c.drawCentredString(self.width / 2, self.y, text)
        else:
            self.c.drawString(self.left, self.y, text)
        self.y -= size * 1.5

    def wrapped(self, text: str, size: float = 10, font: str = "Helvetica", color=TEXT, indent: float = 0) -> None:
        chars_per_line = max(10, int((self.width - 2 * self.left - indent) / (size * 0.5)))
        for part in textwrap.wrap(text, width=chars_per_line) or [""]:
            self._ensure_space(size * 1.5)
            self.c.setFont(font, size)
            self.c.setFillColor(color)
            self.c.drawString(self.left + indent, self.y, part)
            self.y -= size * 1.5

    def field(self, label: str, value: str, size: float = 10) -> None:
        self._ensure_space(size * 1.5)
        self.c.setFillColor(TEXT)
        self.c.setFont("Helvetica-Bold", size)
        self.c.drawString(self.left, self.y, label)
        self.c.setFont("Helvetica", size)
        self.c.drawString(self.left + 45 * mm, self.y, value)
        self.y -= size * 1.5

    def heading(self, text: str) -> None:
        self._ensure_space(30)
        self.line(text, font="Helvetica-Bold", size=14, color=HEADER)
        self.space(4)

    def divider(self) -> None:
        self.c.setStrokeColor(HexColor("#e5e7eb"))
        self.c.setLineWidth(0.5)
        self.c.line(self.left, self.y + 4, self.width - self.left, self.y + 4)
        self.space(6)

    def space(self, points: float) -> None:
        self.y -= points

    def finish(self) -> None:
        self.c.showPage()
        self.c.save()


def build_project_report(
    *,
    organization_name: str,
    project: Project,
    client: Client,
    approvals: Sequence[Tuple[Approval, Optional[User]]],
    audit_trail: Sequence[Tuple[AuditLog, Optional[User]]],
    now: Optional[datetime] = None,
    rpt_id: Optional[str] = None,
) -> bytes:
    """
    Render the project report.

    Args:
        organization_name: Practice name, used as the PDF author
        project: Project to report on
        client: The project's client
        approvals: Approvals oldest first, each with the user who sent it
        audit_trail: Audit entries oldest first
        now: Generation time
        rpt_id: Report id (generated when omitted)

    Returns:
        The PDF document bytes
    """
    now = now or utc_now()
    buf = io.BytesIO()
    w = _ReportWriter(buf, title=f"Project Report - {project.name}", author=organization_name)

    w.line("PROJECT APPROVAL REPORT", font="Helvetica-Bold", size=22, color=PRIMARY, center=True)
    w.line(f"Generated: {format_date(now)}", size=10, color=MUTED, center=True)
    w.line(f"Report ID: {rpt_id or report_id()}", size=10, color=MUTED, center=True)
    w.space(16)

    w.heading("PROJECT DETAILS")
    for label, value in (
        ("Project Name:", project.name),
        ("Reference:", project.reference),
        ("Status:", project.status),
        ("Current Stage:", project.current_stage or "Not set"),
        ("Start Date:", format_short_date(project.start_date)),
        ("Target Completion:", format_short_date(project.target_completion_date)),
        ("Address:", project.address or "Not specified"),
        ("Description:", project.description or "No description"),
    ):
        w.field(label, value)
    w.space(16)

    w.heading("CLIENT INFORMATION")
    for label, value in (
        ("Name:", client.full_name),
        ("Email:", client.email),
        ("Company:", client.company or "N/A"),
        ("Phone:", client.phone or "N/A"),
    ):
        w.field(label, value)
    w.space(16)

    statuses: List[ApprovalStatus] = [effective_status(a, now) for a, _ in approvals]
    total = len(statuses)
    approved = statuses.count(ApprovalStatus.APPROVED)
    response_times = [a.response_time_hours for a, _ in approvals if a.response_time_hours]
    avg_response = f"{sum(response_times) / len(response_times):.1f} hours" if response_times else "N/A"
    approved_pct = round(approved / total * 100) if total else 0

    w.heading("APPROVAL SUMMARY")
    for label, value in (
        ("Total Approvals:", str(total)),
        ("Approved:", f"{approved} ({approved_pct}%)"),
        ("Changes Requested:", str(statuses.count(ApprovalStatus.CHANGES_REQUESTED))),
        ("Pending:", str(statuses.count(ApprovalStatus.PENDING))),
        ("Expired:", str(statuses.count(ApprovalStatus.EXPIRED))),
        ("Avg Response Time:", avg_response),
    ):
        w.field(label, value)
    w.space(16)

    w.heading("APPROVAL HISTORY")
    if not approvals:
        w.line("No approvals have been created for this project.", color=MUTED)
    for index, ((approval, sent_by), status) in enumerate(zip(approvals, statuses), start=1):
        w.line(f"{index}. {approval.stage_label}", font="Helvetica-Bold", size=11, color=HEADER)
        w.line(f"Status: {status.value.replace('_', ' ')}", font="Helvetica-Bold", size=9, color=STATUS_COLORS[status])
        w.line(f"Sent: {format_date(approval.created_at)}", size=9)
        w.line(f"Sent By: {sent_by.full_name if sent_by else 'System'}", size=9)
        w.line(f"Expires: {format_date(approval.expires_at)}", size=9)
        if approval.responded_at:
            w.line(f"Responded: {format_date(approval.responded_at)}", size=9)
        if approval.response_time_hours:
            w.line(f"Response Time: {approval.response_time_hours:.1f} hours", size=9)
        w.line(f"Views: {approval.view_count or 0} | Reminders Sent: {approval.reminder_count or 0}", size=9)
        if approval.deliverable_name:
            w.line(f"Deliverable: {approval.deliverable_name} ({approval.deliverable_type or 'Unknown'})", size=9)
        if approval.response_notes:
            w.wrapped(
                f'Client Feedback: "{approval.response_notes}"',
                size=9,
                font="Helvetica-Oblique",
                color=MUTED,
                indent=10,
            )
        w.space(8)
        if index < total:
            w.divider()

    if audit_trail:
        w.new_page()
        w.heading("AUDIT TRAIL")
        w.line("All recorded actions for this project and its approvals.", size=8, color=MUTED)
        for entry, _ in audit_trail[:MAX_AUDIT_ENTRIES]:
            action = entry.action.replace(".", " -> ").upper()
            w.line(f"{format_date(entry.created_at)}  {action}", size=8)
            if entry.ip_address:
                w.line(f"    IP: {entry.ip_address}", size=8, color=MUTED)
        if len(audit_trail) > MAX_AUDIT_ENTRIES:
            w.space(6)
            w.line(
                f"... and {len(audit_trail) - MAX_AUDIT_ENTRIES} more entries (truncated for report size)",
                size=8,
                color=MUTED,
            )

    w.new_page()
    w.heading("DECLARATION")
    w.wrapped(
        "This report contains a complete record of all approval requests and client responses for the above "
        "project. All timestamps are recorded in UTC."
    )
    w.space(10)
    w.wrapped(
        "This document may be used as evidence of client approvals and feedback in the event of any disputes "
        "regarding project scope, changes, or sign-offs."
    )
    w.space(24)
    for caption in ("Signature (if required)", "Date"):
        w.line("_________________________________", color=MUTED)
        w.line(caption, color=MUTED)
        w.space(10)
    w.space(24)
    w.line("Generated by Approv - Client Approval Workflow Platform", size=8, color=MUTED, center=True)
    w.line("https://approv.co.uk", size=8, color=MUTED, center=True)
    w.finish()
    return buf.getvalue()
