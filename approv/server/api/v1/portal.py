"""
Client Portal API Endpoints.

This module provides the read-only views a client opens with their portal
token, sent as the ``X-Portal-Token`` header or the ``token`` query parameter.
"""

from fastapi import APIRouter

from approv.server.schemas.common import ApiResponse
from approv.server.schemas.portal import PortalOverview, PortalProjectDetail
from approv.server.services import portal as portal_svc
from approv.server.services.deps import PortalClientDep, ReposDep

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[PortalOverview],
    summary="Portal Overview",
    description="The client's active and on-hold projects with their approvals.",
    response_description="The portal overview.",
    responses={401: {"description": "Missing, invalid or expired portal token"}},
)
async def get_portal(repos: ReposDep, client: PortalClientDep):
    return ApiResponse(data=await portal_svc.get_overview(repos, client))


@router.get(
    "/projects/{project_id}",
    response_model=ApiResponse[PortalProjectDetail],
    summary="Portal Project",
    description="One of the client's projects with its approvals and the practice's branding.",
    response_description="The project detail.",
    responses={
        401: {"description": "Missing, invalid or expired portal token"},
        404: {"description": "Project not found for this client"},
    },
)
async def get_portal_project(project_id: str, repos: ReposDep, client: PortalClientDep):
    return ApiResponse(data=await portal_svc.get_project(repos, client, project_id))
