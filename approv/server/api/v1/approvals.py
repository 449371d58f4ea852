"""
Approvals API Endpoints.

This module provides the public endpoints behind an approval link (view,
respond, track views) and the team endpoints to list approvals, send
reminders and resubmit revised deliverables.

The approval link endpoints need no login: the unguessable token in the URL
is the credential, and they are rate limited per token and client IP.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from approv.core.models.domain.enums import ApprovalStatus
from approv.server.middleware.csrf import verify_csrf
from approv.server.middleware.rate_limit import approval_rate_limit, reminder_rate_limit
from approv.server.schemas.approvals import (
    ApprovalListItem,
    ApprovalRespond,
    ApprovalResponseResult,
    ApprovalResubmit,
    ApprovalResubmitResult,
    PublicApprovalView,
    ReminderResult,
)
from approv.server.schemas.common import ApiResponse, Page
from approv.server.services import approvals as approval_svc
from approv.server.services.deps import (
    CurrentUserDep,
    EmailServiceDep,
    MondayServiceDep,
    ReposDep,
    RequestMetaDep,
)

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[Page[ApprovalListItem]],
    summary="List Approvals",
    description="List the organization's approvals, newest first, optionally filtered by status or project.",
    response_description="A page of approvals.",
)
async def list_approvals(
    repos: ReposDep,
    auth: CurrentUserDep,
    status_filter: Annotated[Optional[ApprovalStatus], Query(alias="status")] = None,
    project_id: Annotated[Optional[str], Query(alias="projectId")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=100)] = 20,
):
    result = await approval_svc.list_approvals(
        repos,
        auth,
        status=status_filter.value if status_filter else None,
        project_id=project_id,
        page=page,
        page_size=page_size,
    )
    return ApiResponse(data=result)


@router.get(
    "/{token}",
    response_model=ApiResponse[PublicApprovalView],
    summary="Get Approval by Token",
    description="Load the approval behind a client's approval link. Opening a pending approval counts as a view.",
    response_description="The approval as shown to the client.",
    responses={404: {"description": "Unknown or malformed token"}},
    dependencies=[Depends(approval_rate_limit)],
)
async def get_approval(token: str, repos: ReposDep):
    return ApiResponse(data=await approval_svc.get_public_approval(repos, token))


@router.post(
    "/{token}/respond",
    response_model=ApiResponse[ApprovalResponseResult],
    summary="Respond to Approval",
    description="Approve the deliverable or request changes. Notes of at least 10 characters are required "
    "when requesting changes.",
    response_description="The recorded response.",
    responses={
        400: {"description": "Already responded, expired, or invalid notes"},
        404: {"description": "Unknown or malformed token"},
    },
    dependencies=[Depends(approval_rate_limit), Depends(verify_csrf)],
)
async def respond_to_approval(
    token: str,
    body: ApprovalRespond,
    repos: ReposDep,
    meta: RequestMetaDep,
    background_tasks: BackgroundTasks,
    email_service: EmailServiceDep,
    monday_service: MondayServiceDep,
):
    """
    Submit the client's response.

    Confirmation and team emails and the Monday.com sync run after the
    response has been sent.
    """
    result, notice = await approval_svc.respond(repos, token, body, meta)
    background_tasks.add_task(approval_svc.deliver_response_notifications, notice, email_service, monday_service)
    return ApiResponse(data=result)


@router.post(
    "/{token}/view",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Track Approval View",
    description="Count a view of the approval page. Unknown tokens are ignored.",
    dependencies=[Depends(approval_rate_limit)],
)
async def track_approval_view(token: str, repos: ReposDep):
    await approval_svc.track_view(repos, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{approval_id}/remind",
    response_model=ApiResponse[ReminderResult],
    summary="Send Reminder",
    description="Email the client a reminder for a pending approval.",
    response_description="The reminder count after sending.",
    responses={
        400: {"description": "Approval has expired"},
        404: {"description": "Approval not found or not pending"},
    },
    dependencies=[Depends(reminder_rate_limit), Depends(verify_csrf)],
)
async def send_reminder(approval_id: str, repos: ReposDep, auth: CurrentUserDep, email_service: EmailServiceDep):
    return ApiResponse(data=await approval_svc.send_manual_reminder(repos, auth, approval_id, email_service))


@router.post(
    "/{approval_id}/resubmit",
    response_model=ApiResponse[ApprovalResubmitResult],
    summary="Resubmit Approval",
    description="Send an approval whose changes were requested back to the client as a new revision.",
    response_description="The reopened approval.",
    responses={
        400: {"description": "Approval is not awaiting changes"},
        404: {"description": "Approval not found"},
    },
    dependencies=[Depends(verify_csrf)],
)
async def resubmit_approval(
    approval_id: str,
    body: ApprovalResubmit,
    repos: ReposDep,
    auth: CurrentUserDep,
    meta: RequestMetaDep,
    background_tasks: BackgroundTasks,
    email_service: EmailServiceDep,
):
    result, notice = await approval_svc.resubmit(repos, auth, approval_id, body, meta, email_service.approval_url)
    background_tasks.add_task(approval_svc.send_approval_request, notice, email_service)
    return ApiResponse(data=result)
