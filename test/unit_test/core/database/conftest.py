"""Test configuration for database unit tests.

This module provides common fixtures for testing the persistence layer
against an in-memory SQLite database.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from approv.core.database import create_all, create_sessionmaker
from approv.core.database.entities.clients import Client
from approv.core.database.entities.organizations import Organization
from approv.core.database.entities.projects import Project
from approv.core.database.entities.users import User
from approv.core.database.repositories.bundle import SqlRepoBundle, build_sql_repos_from_session
from approv.core.models.domain.enums import UserRole


@pytest_asyncio.fixture
async def in_memory_engine() -> AsyncGenerator:
    """Create in-memory SQLite engine with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def in_memory_session(in_memory_engine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(in_memory_engine)() as session:
        yield session


@pytest.fixture
def repos(in_memory_session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=in_memory_session)


@pytest_asyncio.fixture
async def org(repos: SqlRepoBundle) -> Organization:
    return await repos.organizations.create(Organization(name="Demo Architects", slug="demo-architects"))


@pytest_asyncio.fixture
async def other_org(repos: SqlRepoBundle) -> Organization:
    return await repos.organizations.create(Organization(name="Other Studio", slug="other-studio"))


@pytest_asyncio.fixture
async def user(repos: SqlRepoBundle, org: Organization) -> User:
    return await repos.users.create(
        User(
            external_id="user_demo",
            organization_id=org.id,
            email="owner@demo.test",
            first_name="Olivia",
            last_name="Owen",
            role=UserRole.OWNER.value,
        )
    )


@pytest_asyncio.fixture
async def client_record(repos: SqlRepoBundle, org: Organization) -> Client:
    return await repos.clients.create(
        Client(organization_id=org.id, first_name="Emma", last_name="Jones", email="Emma.Jones@example.test")
    )


@pytest_asyncio.fixture
async def project_record(repos: SqlRepoBundle, org: Organization, client_record: Client) -> Project:
    return await repos.projects.create(
        Project(organization_id=org.id, client_id=client_record.id, name="Garden Studio", reference="PRJ-2026-010")
    )
