"""
Tests for the client portal API endpoints.
"""

from datetime import timedelta

import pytest

from approv.core.database.base import generate_id
from approv.core.models.domain.lifecycle import utc_now

BASE = "/api/portal"


@pytest.fixture
async def portal_token(repos, practice_client) -> str:
    practice_client.portal_token = generate_id()
    practice_client.portal_token_expiry = utc_now() + timedelta(days=30)
    await repos.clients.update(practice_client)
    return practice_client.portal_token


class TestPortalAuth:
    async def test_missing_token(self, client):
        response = await client.get(BASE)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "PORTAL_AUTH_FAILED"

    async def test_malformed_token(self, client):
        response = await client.get(BASE, headers={"X-Portal-Token": "abc"})
        assert response.json()["error"]["message"] == "Invalid portal token format"

    async def test_unknown_token(self, client, portal_token):
        response = await client.get(BASE, headers={"X-Portal-Token": generate_id()})
        assert response.json()["error"]["message"] == "Invalid portal token"

    async def test_expired_token(self, client, repos, practice_client, portal_token):
        practice_client.portal_token_expiry = utc_now() - timedelta(minutes=1)
        await repos.clients.update(practice_client)

        response = await client.get(BASE, headers={"X-Portal-Token": portal_token})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Portal token has expired"

    async def test_query_token_records_access(self, client, session, practice_client, portal_token):
        response = await client.get(BASE, params={"token": portal_token})

        assert response.status_code == 200
        await session.refresh(practice_client)
        assert practice_client.last_portal_access is not None


class TestPortalViews:
    async def test_overview(self, client, portal_token, project, make_approval):
        await make_approval()
        await make_approval(status="APPROVED")

        response = await client.get(BASE, headers={"X-Portal-Token": portal_token})

        data = response.json()["data"]
        assert data["clientName"] == "John Smith"
        assert data["pendingCount"] == 1
        assert data["projects"][0]["completedApprovalsCount"] == 1

    async def test_project(self, client, portal_token, project, approval):
        response = await client.get(f"{BASE}/projects/{project.id}", headers={"X-Portal-Token": portal_token})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["organization"]["name"] == "Hartley Architects"
        assert data["approvals"][0]["hasDeliverable"] is True
        assert "deliverableUrl" not in data["approvals"][0]

    async def test_unknown_project(self, client, portal_token):
        response = await client.get(f"{BASE}/projects/missing", headers={"X-Portal-Token": portal_token})
        assert response.status_code == 404
