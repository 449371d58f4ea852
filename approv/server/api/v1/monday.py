"""
Monday.com Integration API Endpoints.

This module provides the OAuth connect flow, board selection and disconnect
for syncing approval outcomes to a Monday.com board.
"""

from typing import List

from fastapi import APIRouter

from approv.server.schemas.common import ApiResponse, MessageData
from approv.server.schemas.integrations import (
    AuthorizeUrl,
    IntegrationStatus,
    MondayBoard,
    MondayBoardSelect,
    OAuthCallback,
)
from approv.server.services import integrations as integration_svc
from approv.server.services.deps import CurrentUserDep, MondayServiceDep, ReposDep

router = APIRouter()


@router.get(
    "/status",
    response_model=ApiResponse[IntegrationStatus],
    summary="Monday.com Status",
    response_description="Whether Monday.com is connected and the selected board.",
)
async def get_status(auth: CurrentUserDep):
    return ApiResponse(data=integration_svc.monday_status(auth))


@router.get(
    "/auth",
    response_model=ApiResponse[AuthorizeUrl],
    summary="Start Monday.com Authorization",
    description="Create an OAuth state and return the Monday.com authorize URL to redirect to.",
    response_description="The authorize URL.",
)
async def start_auth(repos: ReposDep, auth: CurrentUserDep, monday: MondayServiceDep):
    return ApiResponse(data=await integration_svc.start_monday_auth(repos, auth, monday))


@router.post(
    "/callback",
    response_model=ApiResponse[MessageData],
    summary="Complete Monday.com Authorization",
    description="Exchange the authorization code returned to the frontend for an access token.",
    response_description="Confirmation message.",
    responses={400: {"description": "Invalid state or failed code exchange"}},
)
async def complete_auth(body: OAuthCallback, repos: ReposDep, auth: CurrentUserDep, monday: MondayServiceDep):
    await integration_svc.complete_monday_auth(repos, auth, body, monday)
    return ApiResponse(data=MessageData(message="Monday.com connected successfully"))


@router.get(
    "/boards",
    response_model=ApiResponse[List[MondayBoard]],
    summary="List Monday.com Boards",
    response_description="Up to 50 boards of the connected account.",
    responses={400: {"description": "Monday.com not connected"}},
)
async def list_boards(auth: CurrentUserDep, monday: MondayServiceDep):
    return ApiResponse(data=await integration_svc.list_monday_boards(auth, monday))


@router.post(
    "/board",
    response_model=ApiResponse[MessageData],
    summary="Select Monday.com Board",
    description="Choose the board whose items are updated when clients respond.",
    response_description="Confirmation message.",
    responses={400: {"description": "Monday.com not connected"}},
)
async def select_board(body: MondayBoardSelect, repos: ReposDep, auth: CurrentUserDep):
    await integration_svc.select_monday_board(repos, auth, body.board_id)
    return ApiResponse(data=MessageData(message="Board selected successfully"))


@router.delete(
    "/disconnect",
    response_model=ApiResponse[MessageData],
    summary="Disconnect Monday.com",
    response_description="Confirmation message.",
)
async def disconnect(repos: ReposDep, auth: CurrentUserDep):
    await integration_svc.disconnect_monday(repos, auth)
    return ApiResponse(data=MessageData(message="Monday.com disconnected"))
