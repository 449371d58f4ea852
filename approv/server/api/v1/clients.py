"""
Clients API Endpoints.

This module provides CRUD endpoints for the organization's clients.
"""

from fastapi import APIRouter, status

from approv.server.schemas.clients import ClientCreate, ClientList, ClientUpdate, ClientView
from approv.server.schemas.common import ApiResponse, MessageData
from approv.server.services import clients as client_svc
from approv.server.services.deps import CurrentUserDep, ReposDep

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[ClientList],
    summary="List Clients",
    description="List the organization's clients, newest first.",
    response_description="All clients and their count.",
)
async def list_clients(repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await client_svc.list_clients(repos, auth))


@router.get(
    "/{client_id}",
    response_model=ApiResponse[ClientView],
    summary="Get Client",
    response_description="The client.",
    responses={404: {"description": "Client not found"}},
)
async def get_client(client_id: str, repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await client_svc.get_client(repos, auth, client_id))


@router.post(
    "",
    response_model=ApiResponse[ClientView],
    status_code=status.HTTP_201_CREATED,
    summary="Create Client",
    description="Create a client. Email addresses are unique within the organization.",
    response_description="The created client.",
    responses={400: {"description": "Duplicate email"}},
)
async def create_client(body: ClientCreate, repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await client_svc.create_client(repos, auth, body))


@router.put(
    "/{client_id}",
    response_model=ApiResponse[ClientView],
    summary="Update Client",
    description="Update a client. Omitted fields keep their current value.",
    response_description="The updated client.",
    responses={400: {"description": "Duplicate email"}, 404: {"description": "Client not found"}},
)
async def update_client(client_id: str, body: ClientUpdate, repos: ReposDep, auth: CurrentUserDep):
    return ApiResponse(data=await client_svc.update_client(repos, auth, client_id, body))


@router.delete(
    "/{client_id}",
    response_model=ApiResponse[MessageData],
    summary="Delete Client",
    description="Delete a client that has no projects.",
    response_description="Confirmation message.",
    responses={400: {"description": "Client still has projects"}, 404: {"description": "Client not found"}},
)
async def delete_client(client_id: str, repos: ReposDep, auth: CurrentUserDep):
    await client_svc.delete_client(repos, auth, client_id)
    return ApiResponse(data=MessageData(message="Client deleted successfully"))
