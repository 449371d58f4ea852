"""
API Dependencies.

``Annotated`` aliases used by the route handlers: the database session and
repositories, the authenticated team member, the portal client and the
external service clients. Tests replace the service getters through
``app.dependency_overrides``.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.database import get_session
from approv.core.database.entities.clients import Client
from approv.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from approv.core.errors import AuthenticationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.lifecycle import is_valid_token, utc_now
from approv.server.middleware.security_headers import get_client_ip, get_user_agent

from .approvals import RequestMeta
from .auth import AuthContext, ClerkIdentityProvider, authenticate, ensure_admin, get_identity_provider
from .dropbox import DropboxService, get_dropbox_service
from .email import EmailService, get_email_service
from .monday import MondayService, get_monday_service
from .slack import SlackService, get_slack_service
from .storage import StorageService, get_storage_service

logger = get_logger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_repos(session: SessionDep) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


ReposDep = Annotated[SqlRepoBundle, Depends(get_repos)]

EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
MondayServiceDep = Annotated[MondayService, Depends(get_monday_service)]
DropboxServiceDep = Annotated[DropboxService, Depends(get_dropbox_service)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
SlackServiceDep = Annotated[SlackService, Depends(get_slack_service)]
IdentityProviderDep = Annotated[ClerkIdentityProvider, Depends(get_identity_provider)]

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    repos: ReposDep,
    provider: IdentityProviderDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(_bearer)],
) -> AuthContext:
    """
    Resolve the bearer token to the team member and organization.

    Raises:
        AuthenticationError: When the token is missing or invalid, or the account is disabled
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No authentication token provided")
    identity = await provider.verify(credentials.credentials)
    return await authenticate(repos, identity)


CurrentUserDep = Annotated[AuthContext, Depends(get_current_user)]


def require_admin(auth: CurrentUserDep) -> AuthContext:
    return ensure_admin(auth)


AdminDep = Annotated[AuthContext, Depends(require_admin)]


def _portal_error(message: str) -> AuthenticationError:
    return AuthenticationError(message, code="PORTAL_AUTH_FAILED")


async def get_portal_client(
    repos: ReposDep,
    x_portal_token: Annotated[Optional[str], Header()] = None,
    token: Annotated[Optional[str], Query()] = None,
) -> Client:
    """
    Authenticate a client by portal token (``X-Portal-Token`` header or ``token`` query).

    Raises:
        AuthenticationError: ``PORTAL_AUTH_FAILED`` for a missing, malformed, unknown or expired token
    """
    portal_token = x_portal_token or token
    if not portal_token:
        raise _portal_error("Portal access token required")
    if not is_valid_token(portal_token):
        raise _portal_error("Invalid portal token format")

    client = await repos.clients.get_by_portal_token(portal_token)
    if client is None:
        raise _portal_error("Invalid portal token")

    now = utc_now()
    if client.portal_token_expiry is not None and client.portal_token_expiry < now:
        raise _portal_error("Portal token has expired")

    try:
        await repos.clients.touch_portal_access(client.id, now)
    except Exception as e:
        await repos.session.rollback()
        logger.warning(f"Could not record portal access for client {client.id}: {e}")
        await repos.session.refresh(client)
    return client


PortalClientDep = Annotated[Client, Depends(get_portal_client)]


def request_meta(request: Request) -> RequestMeta:
    return RequestMeta(ip_address=get_client_ip(request), user_agent=get_user_agent(request))


RequestMetaDep = Annotated[RequestMeta, Depends(request_meta)]
