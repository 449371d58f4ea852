"""
Dashboard Service.

Aggregates approval activity into the numbers shown on the practice
dashboard: 30-day statistics with trends, the recent activity feed,
approvals that are holding projects up, and per-period analytics.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from approv.core.database.entities.approvals import Approval
from approv.core.database.entities.users import User
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.models.domain.enums import STAGE_LABELS, ApprovalStage, ApprovalStatus
from approv.core.models.domain.lifecycle import days_open, utc_now
from approv.server.schemas.common import Page
from approv.server.schemas.dashboard import (
    ActivityItem,
    ActivityLogItem,
    ActivityProject,
    ActivityUser,
    Analytics,
    ApprovalStats,
    Bottleneck,
    DashboardMetrics,
    DashboardOverview,
    DateRange,
    StageBreakdown,
    TimelinePoint,
    Trends,
)

STATS_WINDOW_DAYS = 30
BOTTLENECK_MIN_DAYS = 3
ACTIVITY_ENTITY_TYPES = ("approval", "project")

PERIOD_DAYS: Dict[str, int] = {"week": 7, "month": 30, "quarter": 90, "year": 365}

ACTIVITY_MESSAGES = {
    "approval.created": "{user} sent an approval request",
    "approval.approve": "Client approved the deliverable",
    "approval.request_changes": "Client requested changes",
    "project.created": "{user} created a new project",
    "project.updated": "{user} updated the project",
}


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_stats(approvals: Sequence[Approval]) -> ApprovalStats:
    """Counts, approval rate and mean response time of ``approvals``.

    The approval rate is taken over answered approvals only, and is 0 when
    nothing has been answered yet.
    """
    total = len(approvals)
    approved = sum(1 for a in approvals if a.status == ApprovalStatus.APPROVED)
    changes = sum(1 for a in approvals if a.status == ApprovalStatus.CHANGES_REQUESTED)
    answered = approved + changes
    return ApprovalStats(
        total=total,
        approved=approved,
        changes_requested=changes,
        pending=total - approved - changes,
        approval_rate=approved / answered * 100 if answered else 0.0,
        avg_response_time_hours=_average(
            [a.response_time_hours for a in approvals if a.response_time_hours is not None]
        ),
    )


def percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def compute_trends(current: ApprovalStats, previous: ApprovalStats) -> Trends:
    return Trends(
        projects_change=0.0,
        approvals_change=percent_change(current.total, previous.total),
        response_time_change=percent_change(current.avg_response_time_hours, previous.avg_response_time_hours),
    )


def urgency_for(days: int) -> str:
    if days > 10:
        return "critical"
    if days > 7:
        return "high"
    if days > 5:
        return "medium"
    return "low"


def format_audit_message(action: str, user: Optional[User]) -> str:
    user_name = user.full_name if user else "System"
    template = ACTIVITY_MESSAGES.get(action)
    if template is None:
        return f"{action} by {user_name}"
    return template.format(user=user_name)


def build_timeline(approvals: Sequence[Approval]) -> List[TimelinePoint]:
    """Approvals grouped by creation date (ISO ``YYYY-MM-DD``), oldest date first."""
    grouped: Dict[str, Dict[str, int]] = {}
    for approval in approvals:
        day = grouped.setdefault(
            approval.created_at.date().isoformat(),
            {"total": 0, "approved": 0, "changes_requested": 0, "pending": 0},
        )
        day["total"] += 1
        if approval.status == ApprovalStatus.APPROVED:
            day["approved"] += 1
        elif approval.status == ApprovalStatus.CHANGES_REQUESTED:
            day["changes_requested"] += 1
        else:
            day["pending"] += 1
    ordered = OrderedDict(sorted(grouped.items()))
    return [TimelinePoint(date=date, **counts) for date, counts in ordered.items()]


def build_stage_breakdown(approvals: Sequence[Approval]) -> List[StageBreakdown]:
    breakdown = []
    for stage in ApprovalStage:
        in_stage = [a for a in approvals if a.stage == stage]
        stats = compute_stats(in_stage)
        breakdown.append(
            StageBreakdown(
                stage=stage,
                label=STAGE_LABELS[stage.value],
                total=stats.total,
                approved=stats.approved,
                changes_requested=stats.changes_requested,
                pending=sum(1 for a in in_stage if a.status == ApprovalStatus.PENDING),
                avg_response_time_hours=stats.avg_response_time_hours,
            )
        )
    return breakdown


async def get_approval_stats(
    repos: SqlRepoBundle, organization_id: str, days: int, offset_days: int = 0, now: Optional[datetime] = None
) -> ApprovalStats:
    """Statistics for approvals created in the ``days`` ending ``offset_days`` ago."""
    end = (now or utc_now()) - timedelta(days=offset_days)
    approvals = await repos.approvals.list_created_between(organization_id, end - timedelta(days=days), end)
    return compute_stats(approvals)


async def get_metrics(repos: SqlRepoBundle, organization_id: str, now: Optional[datetime] = None) -> DashboardMetrics:
    now = now or utc_now()
    current = await get_approval_stats(repos, organization_id, STATS_WINDOW_DAYS, now=now)
    previous = await get_approval_stats(repos, organization_id, STATS_WINDOW_DAYS, STATS_WINDOW_DAYS, now=now)
    return DashboardMetrics(
        active_projects=await repos.projects.count_active(organization_id),
        pending_approvals=await repos.approvals.count_open_for_organization(organization_id, now),
        approval_stats=current,
        trends=compute_trends(current, previous),
    )


async def get_recent_activity(repos: SqlRepoBundle, organization_id: str, limit: int) -> List[ActivityItem]:
    rows, _ = await repos.audit_logs.list_activity(
        organization_id, entity_types=ACTIVITY_ENTITY_TYPES, limit=limit, offset=0
    )
    items = []
    for log, user, project in rows:
        new_state = log.get_new_state_dict() or {}
        status = new_state.get("status")
        items.append(
            ActivityItem(
                id=log.id,
                type=log.entity_type,
                message=format_audit_message(log.action, user),
                project_name=project.name if project else "Unknown",
                timestamp=log.created_at,
                status=str(status) if status is not None else None,
            )
        )
    return items


async def get_bottlenecks(
    repos: SqlRepoBundle, organization_id: str, limit: int, now: Optional[datetime] = None
) -> List[Bottleneck]:
    now = now or utc_now()
    rows = await repos.approvals.list_bottlenecks(organization_id, now, limit, min_days=BOTTLENECK_MIN_DAYS)
    bottlenecks = []
    for approval, project, client in rows:
        days = days_open(approval, now)
        bottlenecks.append(
            Bottleneck(
                id=approval.id,
                project_id=project.id,
                project_name=project.name,
                stage_label=approval.stage_label,
                client_name=client.full_name,
                days_pending=days,
                urgency=urgency_for(days),
            )
        )
    return bottlenecks


async def get_overview(repos: SqlRepoBundle, organization_id: str, now: Optional[datetime] = None) -> DashboardOverview:
    now = now or utc_now()
    return DashboardOverview(
        metrics=await get_metrics(repos, organization_id, now),
        recent_activity=await get_recent_activity(repos, organization_id, 10),
        bottlenecks=await get_bottlenecks(repos, organization_id, 5, now),
    )


async def get_analytics(
    repos: SqlRepoBundle, organization_id: str, period: str = "month", now: Optional[datetime] = None
) -> Analytics:
    now = now or utc_now()
    days = PERIOD_DAYS.get(period, STATS_WINDOW_DAYS)
    start = now - timedelta(days=days)
    approvals = await repos.approvals.list_created_between(organization_id, start, now + timedelta(microseconds=1))
    return Analytics(
        period=period,
        timeline=build_timeline(approvals),
        by_stage=build_stage_breakdown(approvals),
        stats=compute_stats(approvals),
        date_range=DateRange(start=start, end=now),
    )


async def list_activity_log(
    repos: SqlRepoBundle,
    organization_id: str,
    *,
    page: int = 1,
    page_size: int = 50,
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
) -> Page[ActivityLogItem]:
    """The organization's audit trail, newest first, with user and project details."""
    rows, total = await repos.audit_logs.list_activity(
        organization_id,
        entity_type=entity_type,
        action=action,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    items = [
        ActivityLogItem(
            id=log.id,
            action=log.action,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            metadata=log.get_metadata_dict(),
            previous_state=log.get_previous_state_dict(),
            new_state=log.get_new_state_dict(),
            created_at=log.created_at,
            user=ActivityUser(name=user.full_name, email=user.email) if user else None,
            project=ActivityProject(name=project.name, reference=project.reference) if project else None,
        )
        for log, user, project in rows
    ]
    return Page[ActivityLogItem].build(items, total, page, page_size)
