"""
Authentication and Authorization Service.

Team members sign in with Clerk. The API receives the Clerk session JWT as a
bearer token, verifies it against Clerk's JWKS with PyJWT and resolves the
subject to a local :class:`User`. A user seen for the first time gets their
own organization and the OWNER role.
"""

import asyncio
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Optional

import httpx
import jwt

from approv.core.database.base import generate_id
from approv.core.database.entities.organizations import Organization
from approv.core.database.entities.projects import Project
from approv.core.database.entities.users import User
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.errors import AuthenticationError, AuthorizationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import OrganizationPlan, UserRole
from approv.core.models.domain.lifecycle import utc_now
from approv.server.core.config import settings

logger = get_logger(__name__)

ADMIN_ROLES = frozenset({UserRole.OWNER.value, UserRole.ADMIN.value})


@dataclass(frozen=True)
class Identity:
    """A verified identity-provider user."""

    external_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass
class AuthContext:
    """The authenticated user and their organization."""

    user: User
    organization: Organization

    @property
    def is_admin(self) -> bool:
        return self.user.role in ADMIN_ROLES


class ClerkIdentityProvider:
    """Verify Clerk session tokens and load the user's profile."""

    def __init__(
        self,
        secret_key: Optional[str],
        jwks_url: Optional[str],
        api_url: str = "https://api.clerk.com/v1",
        allow_unverified: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.secret_key = secret_key
        self.jwks_url = jwks_url
        self.api_url = api_url.rstrip("/")
        self.allow_unverified = allow_unverified
        self.timeout = timeout

    @cached_property
    def _jwks_client(self) -> jwt.PyJWKClient:
        return jwt.PyJWKClient(self.jwks_url, cache_keys=True)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Decode and verify a session token.

        Without a configured JWKS URL the signature is only skipped when
        ``allow_unverified`` is set (local development).

        Raises:
            jwt.PyJWTError: When the token is malformed, expired or unsigned
        """
        if self.jwks_url:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            return jwt.decode(token, signing_key.key, algorithms=["RS256"], options={"verify_aud": False})
        if self.allow_unverified:
            logger.warning("CLERK_JWKS_URL not set; accepting unverified session token (development only)")
            return jwt.decode(token, options={"verify_signature": False})
        raise jwt.InvalidTokenError("No JWKS configured to verify session tokens")

    async def fetch_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        """Load a user from the Clerk users API, or None when no secret key is configured."""
        if not self.secret_key:
            return None
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.api_url}/users/{user_id}",
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
            response.raise_for_status()
            return response.json()

    async def verify(self, token: str) -> Identity:
        """
        Turn a bearer token into an :class:`Identity`.

        Raises:
            AuthenticationError: For any invalid token or unknown user
        """
        try:
            claims = await asyncio.to_thread(self.decode, token)
        except jwt.PyJWTError as e:
            logger.info(f"Rejected session token: {e}")
            raise AuthenticationError("Invalid or expired token") from e

        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Invalid or expired token")

        try:
            profile = await self.fetch_profile(subject)
        except httpx.HTTPError as e:
            logger.warning(f"Clerk user lookup failed for {subject}: {e}")
            raise AuthenticationError("Invalid or expired token") from e

        if profile is None:
            return Identity(
                external_id=subject,
                email=claims.get("email", ""),
                first_name=claims.get("first_name"),
                last_name=claims.get("last_name"),
                avatar_url=claims.get("image_url"),
            )
        return identity_from_clerk_user(profile)


def primary_email(clerk_user: dict[str, Any]) -> str:
    addresses = clerk_user.get("email_addresses") or []
    primary_id = clerk_user.get("primary_email_address_id")
    for address in addresses:
        if address.get("id") == primary_id:
            return address.get("email_address", "")
    return addresses[0].get("email_address", "") if addresses else ""


def identity_from_clerk_user(clerk_user: dict[str, Any]) -> Identity:
    return Identity(
        external_id=clerk_user["id"],
        email=primary_email(clerk_user),
        first_name=clerk_user.get("first_name"),
        last_name=clerk_user.get("last_name"),
        avatar_url=clerk_user.get("image_url"),
    )


_identity_provider: Optional[ClerkIdentityProvider] = None


def get_identity_provider() -> ClerkIdentityProvider:
    global _identity_provider
    if _identity_provider is None:
        clerk = settings.clerk
        _identity_provider = ClerkIdentityProvider(
            secret_key=clerk.secret_key,
            jwks_url=clerk.jwks_url,
            api_url=clerk.api_url,
            allow_unverified=settings.is_development,
        )
    return _identity_provider


async def provision_user(repos: SqlRepoBundle, identity: Identity) -> AuthContext:
    """Create an organization and OWNER user for a first-time sign in."""
    first_name = identity.first_name or "My"
    organization = await repos.organizations.create(
        Organization(
            name=f"{first_name}'s Practice",
            slug=f"org-{generate_id()[1:9]}",
            plan=OrganizationPlan.FREE.value,
        )
    )
    user = await repos.users.create(
        User(
            external_id=identity.external_id,
            organization_id=organization.id,
            email=identity.email,
            first_name=identity.first_name,
            last_name=identity.last_name,
            avatar_url=identity.avatar_url,
            role=UserRole.OWNER.value,
        )
    )
    logger.info(f"Provisioned organization {organization.id} for new user {user.id}")
    return AuthContext(user=user, organization=organization)


async def authenticate(repos: SqlRepoBundle, identity: Identity) -> AuthContext:
    """
    Resolve a verified identity to the local user and organization.

    Raises:
        AuthenticationError: When the account is disabled
    """
    user = await repos.users.get_by_external_id(identity.external_id)
    if user is None:
        return await provision_user(repos, identity)

    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    organization = await repos.organizations.get_by_id(user.organization_id)
    if organization is None:
        raise AuthenticationError("Invalid or expired token")

    user_id = user.id
    try:
        await repos.users.touch_last_login(user_id, utc_now())
    except Exception as e:
        # The rollback expires both rows; reload them before they are read again
        await repos.session.rollback()
        logger.warning(f"Could not update last login for user {user_id}: {e}")
        await repos.session.refresh(user)
        await repos.session.refresh(organization)

    return AuthContext(user=user, organization=organization)


def ensure_admin(auth: AuthContext) -> AuthContext:
    if not auth.is_admin:
        raise AuthorizationError("Insufficient permissions")
    return auth


async def ensure_project_access(repos: SqlRepoBundle, auth: AuthContext, project_id: str) -> Project:
    """
    Check that the user may work on ``project_id``.

    Owners and admins see every project of their organization; members only
    the projects they belong to.

    Raises:
        AuthorizationError: When the project is outside the organization or the member is not on it
    """
    project = await repos.projects.get_for_organization(project_id, auth.organization.id)
    if project is None:
        raise AuthorizationError("Project not found or access denied")
    if auth.is_admin:
        return project
    if await repos.projects.get_member(project_id, auth.user.id) is None:
        raise AuthorizationError("Not a member of this project")
    return project
