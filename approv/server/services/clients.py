"""
Client Service.

CRUD for an organization's clients. Email addresses are unique per
organization, and a client that still has projects cannot be deleted.
"""

from approv.core.database.entities.clients import Client
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import NotFoundError, ValidationError
from approv.core.logging_config import get_logger
from approv.server.schemas.clients import ClientCreate, ClientList, ClientUpdate, ClientView

from .auth import AuthContext

logger = get_logger(__name__)


async def _get_client(repos: SqlRepoBundle, auth: AuthContext, client_id: str) -> Client:
    client = await repos.clients.get_for_organization(client_id, auth.organization.id)
    if client is None:
        raise NotFoundError("Client")
    return client


async def list_clients(repos: SqlRepoBundle, auth: AuthContext) -> ClientList:
    clients = await repos.clients.list_by_organization(auth.organization.id)
    return ClientList(items=[ClientView.model_validate(client) for client in clients], total=len(clients))


async def get_client(repos: SqlRepoBundle, auth: AuthContext, client_id: str) -> ClientView:
    return ClientView.model_validate(await _get_client(repos, auth, client_id))


async def create_client(repos: SqlRepoBundle, auth: AuthContext, body: ClientCreate) -> ClientView:
    if await repos.clients.get_by_email(auth.organization.id, body.email) is not None:
        raise ValidationError("A client with this email already exists", code="DUPLICATE_EMAIL")
    client = await repos.clients.create(
        Client(organization_id=auth.organization.id, created_by=auth.user.id, **body.model_dump())
    )
    logger.info("Client created", extra={"client_id": client.id})
    return ClientView.model_validate(client)


async def update_client(repos: SqlRepoBundle, auth: AuthContext, client_id: str, body: ClientUpdate) -> ClientView:
    client = await _get_client(repos, auth, client_id)
    changes = body.model_dump(exclude_unset=True)

    email = changes.get("email")
    if email and email.lower() != client.email.lower():
        if await repos.clients.get_by_email(auth.organization.id, email, exclude_id=client.id) is not None:
            raise ValidationError("Another client with this email already exists", code="DUPLICATE_EMAIL")

    for field_name, value in changes.items():
        if value is None and field_name in ("first_name", "last_name", "email"):
            continue
        setattr(client, field_name, value)
    return ClientView.model_validate(await repos.clients.update(client))


async def delete_client(repos: SqlRepoBundle, auth: AuthContext, client_id: str) -> None:
    """
    Delete a client with no projects.

    Raises:
        NotFoundError: When the client is not in the organization
        ValidationError: ``HAS_PROJECTS`` while any project still references the client
    """
    client = await _get_client(repos, auth, client_id)
    project_count = await repos.projects.count_for_client(client.id)
    if project_count > 0:
        raise ValidationError(
            f"Cannot delete client with {project_count} project(s). Archive projects first.",
            code="HAS_PROJECTS",
        )
    await repos.clients.delete(client.id)
    logger.info("Client deleted", extra={"client_id": client_id})
