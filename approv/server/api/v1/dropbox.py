"""
Dropbox Integration API Endpoints.

This module provides the OAuth connect flow and disconnect for archiving
approval deliverables to Dropbox.
"""

from fastapi import APIRouter

from approv.server.schemas.common import ApiResponse, MessageData
from approv.server.schemas.integrations import AuthorizeUrl, IntegrationStatus, OAuthCallback
from approv.server.services import integrations as integration_svc
from approv.server.services.deps import CurrentUserDep, DropboxServiceDep, ReposDep

router = APIRouter()


@router.get(
    "/status",
    response_model=ApiResponse[IntegrationStatus],
    summary="Dropbox Status",
    response_description="Whether Dropbox is connected.",
)
async def get_status(auth: CurrentUserDep):
    return ApiResponse(data=integration_svc.dropbox_status(auth))


@router.get(
    "/auth",
    response_model=ApiResponse[AuthorizeUrl],
    summary="Start Dropbox Authorization",
    description="Create an OAuth state and return the Dropbox authorize URL (offline access).",
    response_description="The authorize URL.",
)
async def start_auth(repos: ReposDep, auth: CurrentUserDep, dropbox: DropboxServiceDep):
    return ApiResponse(data=await integration_svc.start_dropbox_auth(repos, auth, dropbox))


@router.post(
    "/callback",
    response_model=ApiResponse[MessageData],
    summary="Complete Dropbox Authorization",
    description="Exchange the authorization code for access and refresh tokens.",
    response_description="Confirmation message.",
    responses={400: {"description": "Invalid state or failed code exchange"}},
)
async def complete_auth(body: OAuthCallback, repos: ReposDep, auth: CurrentUserDep, dropbox: DropboxServiceDep):
    await integration_svc.complete_dropbox_auth(repos, auth, body, dropbox)
    return ApiResponse(data=MessageData(message="Dropbox connected successfully"))


@router.delete(
    "/disconnect",
    response_model=ApiResponse[MessageData],
    summary="Disconnect Dropbox",
    response_description="Confirmation message.",
)
async def disconnect(repos: ReposDep, auth: CurrentUserDep):
    await integration_svc.disconnect_dropbox(repos, auth)
    return ApiResponse(data=MessageData(message="Dropbox disconnected"))
