import itertools
from datetime import timedelta
from typing import Any, AsyncGenerator, Dict, List, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from approv.core.database import create_all, create_sessionmaker
from approv.core.database.entities.approvals import Approval
from approv.core.database.entities.clients import Client
from approv.core.database.entities.organizations import Organization
from approv.core.database.entities.projects import Project, ProjectMember
from approv.core.database.entities.users import User
from approv.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from approv.core.errors import AuthenticationError
from approv.core.models.domain.enums import ProjectMemberRole, UserRole
from approv.core.models.domain.lifecycle import utc_now
from approv.server.core.config import DropboxConfig, MondayConfig, StorageConfig
from approv.server.middleware.csrf import issue_csrf_token
from approv.server.middleware.rate_limit import reset_endpoint_limits
from approv.server.services.auth import ClerkIdentityProvider, Identity
from approv.server.services.dropbox import DropboxService, DropboxTokens
from approv.server.services.email import EmailService
from approv.server.services.monday import MondayService
from approv.server.services.slack import SlackMessage, SlackService
from approv.server.services.storage import StorageService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER_TOKEN = "owner-session-token"
MEMBER_TOKEN = "member-session-token"
NEWCOMER_TOKEN = "newcomer-session-token"

_client_addresses = itertools.count(1)


# =====================================================================
# Fake external services
# =====================================================================


class FakeIdentityProvider(ClerkIdentityProvider):
    """Maps fixed bearer tokens to identities instead of verifying JWTs."""

    def __init__(self, identities: Dict[str, Identity]) -> None:
        super().__init__(secret_key=None, jwks_url=None)
        self.identities = identities

    async def verify(self, token: str) -> Identity:
        identity = self.identities.get(token)
        if identity is None:
            raise AuthenticationError("Invalid or expired token")
        return identity


class RecordingEmailService(EmailService):
    """Renders emails as usual but records them instead of calling Resend."""

    def __init__(self) -> None:
        super().__init__(
            api_key="re_test", from_email="noreply@approv.test", app_url="http://localhost:5173", api_url="http://mock"
        )
        self.sent: List[Dict[str, Any]] = []
        self.fail = False

    async def send(self, to, subject, html_body, text_body=None) -> Optional[str]:
        if self.fail:
            return None
        recipients = [to] if isinstance(to, str) else list(to)
        self.sent.append({"to": recipients, "subject": subject, "html": html_body, "text": text_body})
        return f"msg_{len(self.sent)}"

    def subjects(self) -> List[str]:
        return [message["subject"] for message in self.sent]


class RecordingMondayService(MondayService):
    def __init__(self) -> None:
        super().__init__(MondayConfig(client_id="monday-client", client_secret="monday-secret"), auth_url="http://mock")
        self.synced: List[Dict[str, Any]] = []

    async def exchange_code(self, code: str) -> Optional[str]:
        return None if code == "bad-code" else "monday-access-token"

    async def get_boards(self, token: str) -> List[Dict[str, Any]]:
        return [{"id": 1001, "name": "Client Projects"}, {"id": 1002, "name": "Planning"}]

    async def sync_approval(self, *, token, board_id, item_id, status) -> bool:
        self.synced.append({"token": token, "board_id": board_id, "item_id": item_id, "status": status})
        return True


class RecordingDropboxService(DropboxService):
    def __init__(self) -> None:
        super().__init__(
            DropboxConfig(app_key="dropbox-key", app_secret="dropbox-secret"), app_url="http://localhost:5173"
        )

    async def exchange_code(self, code: str) -> Optional[DropboxTokens]:
        if code == "bad-code":
            return None
        return DropboxTokens(
            access_token="dropbox-access", refresh_token="dropbox-refresh", expires_at=utc_now() + timedelta(hours=4)
        )


class RecordingSlackService(SlackService):
    def __init__(self) -> None:
        super().__init__(api_url="http://mock")
        self.messages: List[Dict[str, str]] = []

    async def post_message(self, bot_token: str, channel: str, text: str) -> SlackMessage:
        self.messages.append({"bot_token": bot_token, "channel": channel, "text": text})
        return SlackMessage(channel=channel, ts="1700000000.000100")


class RecordingStorageService(StorageService):
    """Presigns locally with fake credentials; deletions are recorded."""

    def __init__(self, configured: bool = True) -> None:
        config = (
            StorageConfig(account_id="account", access_key_id="access-key", secret_access_key="secret-key")
            if configured
            else StorageConfig()
        )
        super().__init__(config)
        self.deleted: List[str] = []

    async def delete(self, key: str) -> None:
        self._require_configured()
        self.deleted.append(key)


# =====================================================================
# Database
# =====================================================================


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_endpoint_limits()
    yield
    reset_endpoint_limits()


# =====================================================================
# Domain records
# =====================================================================


@pytest_asyncio.fixture
async def organization(repos: SqlRepoBundle) -> Organization:
    return await repos.organizations.create(
        Organization(name="Hartley Architects", slug="hartley-architects", primary_color="#1F4E79")
    )


@pytest_asyncio.fixture
async def owner(repos: SqlRepoBundle, organization: Organization) -> User:
    return await repos.users.create(
        User(
            external_id="user_owner",
            organization_id=organization.id,
            email="sarah@hartley.test",
            first_name="Sarah",
            last_name="Hartley",
            role=UserRole.OWNER.value,
        )
    )


@pytest_asyncio.fixture
async def member(repos: SqlRepoBundle, organization: Organization) -> User:
    return await repos.users.create(
        User(
            external_id="user_member",
            organization_id=organization.id,
            email="james@hartley.test",
            first_name="James",
            last_name="Cole",
            role=UserRole.MEMBER.value,
        )
    )


@pytest_asyncio.fixture
async def practice_client(repos: SqlRepoBundle, organization: Organization, owner: User) -> Client:
    return await repos.clients.create(
        Client(
            organization_id=organization.id,
            first_name="John",
            last_name="Smith",
            email="john.smith@example.test",
            company="Smith Family Trust",
            created_by=owner.id,
        )
    )


@pytest_asyncio.fixture
async def project(repos: SqlRepoBundle, organization: Organization, practice_client: Client, owner: User) -> Project:
    project = await repos.projects.create(
        Project(
            organization_id=organization.id,
            client_id=practice_client.id,
            name="Hartley Road Extension",
            reference="PRJ-2026-001",
            address="12 Hartley Road",
        )
    )
    await repos.projects.add_member(
        ProjectMember(project_id=project.id, user_id=owner.id, role=ProjectMemberRole.LEAD.value)
    )
    return project


@pytest.fixture
def make_approval(repos: SqlRepoBundle, project: Project, practice_client: Client, owner: User):
    """Factory for approvals on ``project``; keyword arguments override the defaults."""

    async def _make(**overrides) -> Approval:
        now = utc_now()
        values: Dict[str, Any] = {
            "project_id": project.id,
            "client_id": practice_client.id,
            "sent_by_id": owner.id,
            "stage": "INITIAL_DRAWINGS",
            "stage_label": "Initial Drawings",
            "deliverable_url": "https://files.example.com/drawings.pdf",
            "deliverable_type": "PDF",
            "deliverable_name": "drawings.pdf",
            "expires_at": now + timedelta(days=14),
        }
        values.update(overrides)
        return await repos.approvals.create(Approval(**values))

    return _make


@pytest_asyncio.fixture
async def approval(make_approval) -> Approval:
    return await make_approval()


# =====================================================================
# Application client
# =====================================================================


@pytest.fixture
def identities() -> Dict[str, Identity]:
    return {
        OWNER_TOKEN: Identity(external_id="user_owner", email="sarah@hartley.test", first_name="Sarah"),
        MEMBER_TOKEN: Identity(external_id="user_member", email="james@hartley.test", first_name="James"),
        NEWCOMER_TOKEN: Identity(
            external_id="user_newcomer", email="nina@newpractice.test", first_name="Nina", last_name="Patel"
        ),
    }


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def monday_service() -> RecordingMondayService:
    return RecordingMondayService()


@pytest.fixture
def dropbox_service() -> RecordingDropboxService:
    return RecordingDropboxService()


@pytest.fixture
def slack_service() -> RecordingSlackService:
    return RecordingSlackService()


@pytest.fixture
def storage_service() -> RecordingStorageService:
    return RecordingStorageService()


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session: AsyncSession,
    identities,
    email_service,
    monday_service,
    dropbox_service,
    slack_service,
    storage_service,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from approv.core.database import get_session
    from approv.server.main import app
    from approv.server.services.auth import get_identity_provider
    from approv.server.services.dropbox import get_dropbox_service
    from approv.server.services.email import get_email_service
    from approv.server.services.monday import get_monday_service
    from approv.server.services.slack import get_slack_service
    from approv.server.services.storage import get_storage_service

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    provider = FakeIdentityProvider(identities)
    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_identity_provider] = lambda: provider
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_monday_service] = lambda: monday_service
    app.dependency_overrides[get_dropbox_service] = lambda: dropbox_service
    app.dependency_overrides[get_slack_service] = lambda: slack_service
    app.dependency_overrides[get_storage_service] = lambda: storage_service

    # The general limiter lives for the whole app; a fresh address per test keeps tests independent.
    n = next(_client_addresses)
    headers = {"X-Forwarded-For": f"10.{n // 65536 % 256}.{n // 256 % 256}.{n % 256}"}

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("approv.server.main.lifespan", mock_lifespan):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://localhost", headers=headers
        ) as client:
            yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def csrf_token(repos: SqlRepoBundle) -> str:
    return await issue_csrf_token(repos.csrf_tokens)


@pytest.fixture
def owner_headers(owner: User, csrf_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {OWNER_TOKEN}", "X-CSRF-Token": csrf_token}


@pytest.fixture
def member_headers(member: User, csrf_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {MEMBER_TOKEN}", "X-CSRF-Token": csrf_token}


@pytest.fixture
def newcomer_headers(csrf_token: str) -> Dict[str, str]:
    """Headers of a signed-in user with no local account yet."""
    return {"Authorization": f"Bearer {NEWCOMER_TOKEN}", "X-CSRF-Token": csrf_token}
