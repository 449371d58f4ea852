"""
Unit tests for authentication and project access checks.
"""

from unittest.mock import AsyncMock, patch

import jwt
import pytest
from sqlalchemy.exc import OperationalError

from approv.core.database.entities.projects import Project
from approv.core.database.repositories.users import UserRepository
from approv.core.errors import AuthenticationError, AuthorizationError
from approv.server.services.auth import (
    AuthContext,
    ClerkIdentityProvider,
    Identity,
    authenticate,
    ensure_admin,
    ensure_project_access,
    identity_from_clerk_user,
)


def session_token(**claims) -> str:
    return jwt.encode(claims, "unverified-development-signing-key", algorithm="HS256")


class TestClerkIdentityProvider:
    """Test bearer token verification."""

    async def test_unverified_tokens_in_development(self):
        provider = ClerkIdentityProvider(secret_key=None, jwks_url=None, allow_unverified=True)
        identity = await provider.verify(session_token(sub="user_1", email="a@b.test", first_name="Ann"))
        assert identity == Identity(external_id="user_1", email="a@b.test", first_name="Ann")

    async def test_unverified_tokens_rejected_otherwise(self):
        provider = ClerkIdentityProvider(secret_key=None, jwks_url=None)
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            await provider.verify(session_token(sub="user_1"))

    async def test_garbage_token(self):
        provider = ClerkIdentityProvider(secret_key=None, jwks_url=None, allow_unverified=True)
        with pytest.raises(AuthenticationError):
            await provider.verify("not-a-jwt")

    async def test_token_without_subject(self):
        provider = ClerkIdentityProvider(secret_key=None, jwks_url=None, allow_unverified=True)
        with pytest.raises(AuthenticationError):
            await provider.verify(session_token(email="a@b.test"))

    async def test_profile_is_loaded_when_secret_configured(self):
        provider = ClerkIdentityProvider(secret_key="sk_test", jwks_url=None, allow_unverified=True)
        profile = {
            "id": "user_1",
            "first_name": "Ann",
            "primary_email_address_id": "em_1",
            "email_addresses": [{"id": "em_1", "email_address": "ann@practice.test"}],
        }
        with patch.object(provider, "fetch_profile", AsyncMock(return_value=profile)):
            identity = await provider.verify(session_token(sub="user_1"))
        assert identity.email == "ann@practice.test"


def test_identity_from_clerk_user_falls_back_to_first_address():
    identity = identity_from_clerk_user(
        {"id": "user_1", "email_addresses": [{"id": "em_9", "email_address": "first@practice.test"}]}
    )
    assert identity.email == "first@practice.test"


class TestAuthenticate:
    """Test resolving identities to local users."""

    async def test_first_sign_in_provisions_organization(self, repos):
        auth = await authenticate(repos, Identity(external_id="user_new", email="nina@new.test", first_name="Nina"))

        assert auth.user.role == "OWNER"
        assert auth.organization.name == "Nina's Practice"
        assert auth.organization.slug.startswith("org-")
        assert len(auth.organization.slug) == 12
        assert auth.organization.plan == "FREE"

    async def test_existing_user(self, repos, owner, organization):
        auth = await authenticate(repos, Identity(external_id="user_owner", email="sarah@hartley.test"))
        assert auth.user.id == owner.id
        assert auth.organization.id == organization.id
        assert auth.is_admin is True

    async def test_disabled_user(self, repos, member):
        member.is_active = False
        await repos.users.update(member)
        with pytest.raises(AuthenticationError, match="Account is disabled"):
            await authenticate(repos, Identity(external_id="user_member", email="james@hartley.test"))

    async def test_last_login_failure_keeps_the_session_usable(self, repos, owner, organization):
        failure = OperationalError("UPDATE users", {}, Exception("database is locked"))
        with patch.object(UserRepository, "touch_last_login", AsyncMock(side_effect=failure)):
            auth = await authenticate(repos, Identity(external_id="user_owner", email="sarah@hartley.test"))

        assert auth.user.email == "sarah@hartley.test"
        assert auth.organization.name == "Hartley Architects"


class TestAccessChecks:
    def test_ensure_admin(self, owner, member, organization):
        assert ensure_admin(AuthContext(user=owner, organization=organization)).user is owner
        with pytest.raises(AuthorizationError):
            ensure_admin(AuthContext(user=member, organization=organization))

    async def test_owner_sees_every_project(self, repos, owner, organization, project):
        auth = AuthContext(user=owner, organization=organization)
        assert (await ensure_project_access(repos, auth, project.id)).id == project.id

    async def test_member_needs_membership(self, repos, member, organization, project):
        auth = AuthContext(user=member, organization=organization)
        with pytest.raises(AuthorizationError, match="Not a member of this project"):
            await ensure_project_access(repos, auth, project.id)

    async def test_other_organization(self, repos, organization, practice_client):
        other = await authenticate(repos, Identity(external_id="user_x", email="x@other.test"))
        foreign = await repos.projects.create(
            Project(organization_id=organization.id, client_id=practice_client.id, name="Foreign", reference="PRJ-X")
        )
        with pytest.raises(AuthorizationError, match="Project not found or access denied"):
            await ensure_project_access(repos, other, foreign.id)
