"""
Dashboard API Endpoints.

This module provides the practice dashboard: headline metrics with 30-day
trends, the recent activity feed, approvals that are holding projects up,
and per-period analytics.
"""

from typing import Annotated, List, Literal

from fastapi import APIRouter, Query

from approv.server.schemas.common import ApiResponse
from approv.server.schemas.dashboard import ActivityItem, Analytics, Bottleneck, DashboardMetrics, DashboardOverview
from approv.server.services import dashboard as dashboard_svc
from approv.server.services.deps import CurrentUserDep, ReposDep

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[DashboardOverview],
    summary="Dashboard Overview",
    description="Metrics, the 10 most recent activities and the 5 oldest pending approvals.",
    response_description="The dashboard overview.",
)
async def get_dashboard(repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await dashboard_svc.get_overview(repos, auth.organization.id))


@router.get(
    "/metrics",
    response_model=ApiResponse[DashboardMetrics],
    summary="Dashboard Metrics",
    description="Active projects, open approvals and 30-day approval statistics compared with the 30 days before.",
    response_description="The metrics.",
)
async def get_metrics(repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await dashboard_svc.get_metrics(repos, auth.organization.id))


@router.get(
    "/analytics",
    response_model=ApiResponse[Analytics],
    summary="Approval Analytics",
    description="Daily timeline, per-stage breakdown and statistics for approvals created in the period.",
    response_description="The analytics for the period.",
)
async def get_analytics(
    repos: ReposDep,
    auth: CurrentUserDep,
    period: Annotated[Literal["week", "month", "quarter", "year"], Query()] = "month",
):
    return ApiResponse(data=await dashboard_svc.get_analytics(repos, auth.organization.id, period))


@router.get(
    "/activity",
    response_model=ApiResponse[List[ActivityItem]],
    summary="Recent Activity",
    response_description="The 20 most recent project and approval activities.",
)
async def get_activity(repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await dashboard_svc.get_recent_activity(repos, auth.organization.id, 20))


@router.get(
    "/bottlenecks",
    response_model=ApiResponse[List[Bottleneck]],
    summary="Approval Bottlenecks",
    description="Pending approvals older than three days, oldest first, with an urgency rating.",
    response_description="Up to 10 bottlenecks.",
)
async def get_bottlenecks(repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await dashboard_svc.get_bottlenecks(repos, auth.organization.id, 10))
