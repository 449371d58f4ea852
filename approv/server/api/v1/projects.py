"""
Projects API Endpoints.

This module provides project listing, detail, creation and updates, sending
new approval requests for a project and downloading the project's PDF
approval report.
"""

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Query, Response, status

from approv.core.models.domain.enums import ApprovalStage, ProjectStatus
from approv.server.schemas.approvals import ApprovalCreate, ApprovalCreated
from approv.server.schemas.common import ApiResponse, Page
from approv.server.schemas.projects import (
    ProjectCreate,
    ProjectCreated,
    ProjectDetail,
    ProjectListItem,
    ProjectListQuery,
    ProjectUpdate,
    ProjectUpdated,
)
from approv.server.services import approvals as approval_svc
from approv.server.services import projects as project_svc
from approv.server.services.auth import ensure_project_access
from approv.server.services.deps import CurrentUserDep, EmailServiceDep, ReposDep, RequestMetaDep

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[Page[ProjectListItem]],
    summary="List Projects",
    description="List the organization's projects with filters, search, sorting and paging.",
    response_description="A page of projects.",
)
async def list_projects(
    repos: ReposDep,
    auth: CurrentUserDep,
    status_filter: Annotated[Optional[ProjectStatus], Query(alias="status")] = None,
    stage: Annotated[Optional[ApprovalStage], Query()] = None,
    client_id: Annotated[Optional[str], Query(alias="clientId")] = None,
    search: Annotated[Optional[str], Query(max_length=200)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=100)] = 20,
    sort_field: Annotated[str, Query(alias="sortField")] = "createdAt",
    sort_direction: Annotated[Literal["asc", "desc"], Query(alias="sortDirection")] = "desc",
):
    query = ProjectListQuery(
        status=status_filter,
        stage=stage,
        client_id=client_id,
        search=search,
        page=page,
        page_size=page_size,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    return ApiResponse(data=await project_svc.list_projects(repos, auth, query))


@router.post(
    "",
    response_model=ApiResponse[ProjectCreated],
    status_code=status.HTTP_201_CREATED,
    summary="Create Project",
    description="Create a project for an existing client or together with a new client.",
    response_description="The created project.",
    responses={409: {"description": "Reference already in use"}},
)
async def create_project(body: ProjectCreate, repos: ReposDep, auth: CurrentUserDep, meta: RequestMetaDep):
    return ApiResponse(data=await project_svc.create_project(repos, auth, body, meta))


@router.get(
    "/{project_id}",
    response_model=ApiResponse[ProjectDetail],
    summary="Get Project",
    description="Project with its client, team members, approvals and approval statistics.",
    response_description="The project detail.",
    responses={403: {"description": "No access to this project"}},
)
async def get_project(project_id: str, repos: ReposDep, auth: CurrentUserDep):
    await ensure_project_access(repos, auth, project_id)
    return ApiResponse(data=await project_svc.get_project_detail(repos, auth, project_id))


@router.patch(
    "/{project_id}",
    response_model=ApiResponse[ProjectUpdated],
    summary="Update Project",
    description="Partially update a project. Setting the status to COMPLETED records the completion time.",
    response_description="The updated project.",
    responses={403: {"description": "No access to this project"}},
)
async def update_project(
    project_id: str, body: ProjectUpdate, repos: ReposDep, auth: CurrentUserDep, meta: RequestMetaDep
):
    project = await ensure_project_access(repos, auth, project_id)
    return ApiResponse(data=await project_svc.update_project(repos, auth, project, body, meta))


@router.post(
    "/{project_id}/approvals",
    response_model=ApiResponse[ApprovalCreated],
    status_code=status.HTTP_201_CREATED,
    summary="Create Approval Request",
    description="Create an approval request for the project's client and email them the approval link.",
    response_description="The created approval with its link.",
    responses={403: {"description": "No access to this project"}},
)
async def create_approval(
    project_id: str,
    body: ApprovalCreate,
    repos: ReposDep,
    auth: CurrentUserDep,
    meta: RequestMetaDep,
    background_tasks: BackgroundTasks,
    email_service: EmailServiceDep,
):
    project = await ensure_project_access(repos, auth, project_id)
    result, notice = await approval_svc.create_approval(
        repos, auth, project, body, meta, email_service.approval_url
    )
    background_tasks.add_task(approval_svc.send_approval_request, notice, email_service)
    return ApiResponse(data=result)


@router.get(
    "/{project_id}/report",
    response_class=Response,
    summary="Download Project Report",
    description="PDF report of the project's approval history and audit trail.",
    response_description="The PDF document.",
    responses={
        200: {"content": {"application/pdf": {}}},
        403: {"description": "No access to this project"},
    },
)
async def download_report(project_id: str, repos: ReposDep, auth: CurrentUserDep, meta: RequestMetaDep):
    await ensure_project_access(repos, auth, project_id)
    report = await project_svc.generate_report(repos, auth, project_id, meta)
    return Response(
        content=report.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
