"""
Organizations API Endpoints.

This module provides the current organization's profile and branding.
"""

from fastapi import APIRouter

from approv.server.schemas.common import ApiResponse
from approv.server.schemas.organizations import OrganizationUpdate, OrganizationView
from approv.server.services import organizations as organization_svc
from approv.server.services.deps import CurrentUserDep, ReposDep, RequestMetaDep

router = APIRouter()


@router.get(
    "/current",
    response_model=ApiResponse[OrganizationView],
    summary="Get Current Organization",
    response_description="The caller's organization.",
)
async def get_current_organization(auth: CurrentUserDep):
    return ApiResponse(data=organization_svc.get_current(auth))


@router.put(
    "/current",
    response_model=ApiResponse[OrganizationView],
    summary="Update Current Organization",
    description="Update the organization's profile and email branding.",
    response_description="The updated organization.",
)
async def update_current_organization(
    body: OrganizationUpdate, repos: ReposDep, auth: CurrentUserDep, meta: RequestMetaDep
):
    return ApiResponse(data=await organization_svc.update_current(repos, auth, body, meta))
