"""
Dashboard and Activity API Schemas.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from approv.core.models.domain.enums import ApprovalStage

from .common import ApiModel

Urgency = Literal["low", "medium", "high", "critical"]


class ApprovalStats(ApiModel):
    total: int
    approved: int
    changes_requested: int
    pending: int
    approval_rate: float
    avg_response_time_hours: float


class Trends(ApiModel):
    projects_change: float
    approvals_change: float
    response_time_change: float


class DashboardMetrics(ApiModel):
    active_projects: int
    pending_approvals: int
    approval_stats: ApprovalStats
    trends: Trends


class ActivityItem(ApiModel):
    id: str
    type: str
    message: str
    project_name: str
    timestamp: datetime
    status: Optional[str] = None


class Bottleneck(ApiModel):
    id: str
    project_id: str
    project_name: str
    stage_label: str
    client_name: str
    days_pending: int
    urgency: Urgency


class DashboardOverview(ApiModel):
    metrics: DashboardMetrics
    recent_activity: List[ActivityItem]
    bottlenecks: List[Bottleneck]


class TimelinePoint(ApiModel):
    date: str
    total: int
    approved: int
    changes_requested: int
    pending: int


class StageBreakdown(ApiModel):
    stage: ApprovalStage
    label: str
    total: int
    approved: int
    changes_requested: int
    pending: int
    avg_response_time_hours: float


class DateRange(ApiModel):
    start: datetime
    end: datetime


class Analytics(ApiModel):
    period: str
    timeline: List[TimelinePoint]
    by_stage: List[StageBreakdown]
    stats: ApprovalStats
    date_range: DateRange


class ActivityUser(ApiModel):
    name: str
    email: str


class ActivityProject(ApiModel):
    name: str
    reference: str


class ActivityLogItem(ApiModel):
    id: str
    action: str
    entity_type: str
    entity_id: str
    metadata: Optional[Dict] = None
    previous_state: Optional[Dict] = None
    new_state: Optional[Dict] = None
    created_at: datetime
    user: Optional[ActivityUser] = None
    project: Optional[ActivityProject] = None
