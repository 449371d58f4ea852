"""
Integration Connection Service.

OAuth connect and disconnect flows for Monday.com and Dropbox. The state
sent to the provider is ``{organization_id}:{uuid4}`` and is stored on the
organization until the callback consumes it.
"""

import uuid
from typing import List

from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import ValidationError
from approv.core.logging_config import get_logger
from approv.server.schemas.integrations import AuthorizeUrl, IntegrationStatus, MondayBoard, OAuthCallback

from .auth import AuthContext
from .dropbox import DropboxService
from .monday import MondayService

logger = get_logger(__name__)

INVALID_STATE = "Invalid state - please try again"


def new_oauth_state(organization_id: str) -> str:
    return f"{organization_id}:{uuid.uuid4()}"


# =====================================================================
# Monday.com
# =====================================================================


def monday_status(auth: AuthContext) -> IntegrationStatus:
    organization = auth.organization
    return IntegrationStatus(connected=bool(organization.monday_api_token), board_id=organization.monday_board_id)


async def start_monday_auth(repos: SqlRepoBundle, auth: AuthContext, monday: MondayService) -> AuthorizeUrl:
    state = new_oauth_state(auth.organization.id)
    url = monday.get_auth_url(state)
    auth.organization.monday_oauth_state = state
    await repos.organizations.update(auth.organization)
    return AuthorizeUrl(auth_url=url)


async def complete_monday_auth(
    repos: SqlRepoBundle, auth: AuthContext, body: OAuthCallback, monday: MondayService
) -> None:
    """
    Exchange the authorization code and store the access token.

    Raises:
        ValidationError: When the state does not match or the exchange fails
    """
    organization = auth.organization
    if not organization.monday_oauth_state or organization.monday_oauth_state != body.state:
        raise ValidationError(INVALID_STATE)

    token = await monday.exchange_code(body.code)
    if not token:
        raise ValidationError("Failed to connect Monday.com")

    organization.monday_api_token = token
    organization.monday_oauth_state = None
    await repos.organizations.update(organization)
    logger.info("Monday.com connected", extra={"organization_id": organization.id})


def _require_monday_token(auth: AuthContext) -> str:
    if not auth.organization.monday_api_token:
        raise ValidationError("Monday.com not connected", code="MONDAY_NOT_CONNECTED")
    return auth.organization.monday_api_token


async def list_monday_boards(auth: AuthContext, monday: MondayService) -> List[MondayBoard]:
    boards = await monday.get_boards(_require_monday_token(auth))
    return [MondayBoard(id=str(board["id"]), name=board["name"]) for board in boards]


async def select_monday_board(repos: SqlRepoBundle, auth: AuthContext, board_id: str) -> None:
    _require_monday_token(auth)
    auth.organization.monday_board_id = board_id
    await repos.organizations.update(auth.organization)
    logger.info("Monday.com board selected", extra={"organization_id": auth.organization.id, "board_id": board_id})


async def disconnect_monday(repos: SqlRepoBundle, auth: AuthContext) -> None:
    organization = auth.organization
    organization.monday_api_token = None
    organization.monday_board_id = None
    organization.monday_oauth_state = None
    await repos.organizations.update(organization)
    logger.info("Monday.com disconnected", extra={"organization_id": organization.id})


# =====================================================================
# Dropbox
# =====================================================================


def dropbox_status(auth: AuthContext) -> IntegrationStatus:
    return IntegrationStatus(connected=bool(auth.organization.dropbox_refresh_token))


async def start_dropbox_auth(repos: SqlRepoBundle, auth: AuthContext, dropbox: DropboxService) -> AuthorizeUrl:
    state = new_oauth_state(auth.organization.id)
    url = dropbox.get_auth_url(state)
    auth.organization.dropbox_oauth_state = state
    await repos.organizations.update(auth.organization)
    return AuthorizeUrl(auth_url=url)


async def complete_dropbox_auth(
    repos: SqlRepoBundle, auth: AuthContext, body: OAuthCallback, dropbox: DropboxService
) -> None:
    organization = auth.organization
    if not organization.dropbox_oauth_state or organization.dropbox_oauth_state != body.state:
        raise ValidationError(INVALID_STATE)

    tokens = await dropbox.exchange_code(body.code)
    if tokens is None:
        raise ValidationError("Failed to connect Dropbox")

    organization.dropbox_access_token = tokens.access_token
    organization.dropbox_refresh_token = tokens.refresh_token
    organization.dropbox_token_expiry = tokens.expires_at
    organization.dropbox_oauth_state = None
    await repos.organizations.update(organization)
    logger.info("Dropbox connected", extra={"organization_id": organization.id})


async def disconnect_dropbox(repos: SqlRepoBundle, auth: AuthContext) -> None:
    organization = auth.organization
    organization.dropbox_access_token = None
    organization.dropbox_refresh_token = None
    organization.dropbox_token_expiry = None
    organization.dropbox_oauth_state = None
    await repos.organizations.update(organization)
    logger.info("Dropbox disconnected", extra={"organization_id": organization.id})
