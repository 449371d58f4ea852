"""
Tests for the approvals API endpoints.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from approv.core.database.repositories.approvals import ApprovalRepository
from approv.core.models.domain.lifecycle import utc_now

BASE = "/api/approvals"


async def _failing_increment(self, approval_id, when):
    raise OperationalError("UPDATE approvals", {}, Exception("database is locked"))


class TestPublicApprovalLink:
    """Test the endpoints reached from a client's approval link."""

    async def test_get_by_token(self, client, approval):
        response = await client.get(f"{BASE}/{approval.token}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["projectName"] == "Hartley Road Extension"
        assert data["stageLabel"] == "Initial Drawings"
        assert data["status"] == "PENDING"
        assert data["organization"] == {"name": "Hartley Architects", "logo": None, "primaryColor": "#1F4E79"}

    async def test_malformed_token(self, client):
        response = await client.get(f"{BASE}/not-a-token")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_track_view_needs_no_csrf(self, client, session, approval):
        response = await client.post(f"{BASE}/{approval.token}/view")

        assert response.status_code == 204
        await session.refresh(approval)
        assert approval.view_count == 1

    async def test_view_count_failure_still_shows_link(self, client, approval, monkeypatch):
        monkeypatch.setattr(ApprovalRepository, "increment_view", _failing_increment)

        response = await client.get(f"{BASE}/{approval.token}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "PENDING"

    async def test_track_view_failure_is_ignored(self, client, approval, monkeypatch):
        monkeypatch.setattr(ApprovalRepository, "increment_view", _failing_increment)

        response = await client.post(f"{BASE}/{approval.token}/view")

        assert response.status_code == 204

    async def test_rate_limited_per_token(self, client, approval):
        for _ in range(20):
            assert (await client.get(f"{BASE}/{approval.token}")).status_code == 200

        response = await client.get(f"{BASE}/{approval.token}")

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "APPROVAL_RATE_LIMIT"
        assert "Retry-After" in response.headers


class TestRespond:
    async def test_approve(self, client, approval, owner, csrf_token, email_service):
        response = await client.post(
            f"{BASE}/{approval.token}/respond",
            json={"action": "approve"},
            headers={"X-CSRF-Token": csrf_token},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "APPROVED"
        assert data["message"] == "Thank you for your approval!"
        assert email_service.subjects() == [
            "Approved: Hartley Road Extension - Initial Drawings",
            "John Smith approved Initial Drawings - Hartley Road Extension",
        ]

    async def test_syncs_linked_monday_item(
        self, client, repos, approval, project, organization, csrf_token, monday_service
    ):
        organization.monday_api_token = "monday-token"
        organization.monday_board_id = "1001"
        await repos.organizations.update(organization)
        project.monday_item_id = "555"
        await repos.projects.update(project)

        await client.post(
            f"{BASE}/{approval.token}/respond",
            json={"action": "request_changes", "notes": "Please lower the ridge height."},
            headers={"X-CSRF-Token": csrf_token},
        )

        assert monday_service.synced == [
            {"token": "monday-token", "board_id": "1001", "item_id": "555", "status": "CHANGES_REQUESTED"}
        ]

    async def test_requires_csrf(self, client, approval):
        response = await client.post(f"{BASE}/{approval.token}/respond", json={"action": "approve"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "CSRF_MISSING"

    async def test_short_feedback(self, client, approval, csrf_token):
        response = await client.post(
            f"{BASE}/{approval.token}/respond",
            json={"action": "request_changes", "notes": "no"},
            headers={"X-CSRF-Token": csrf_token},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_action(self, client, approval, csrf_token):
        response = await client.post(
            f"{BASE}/{approval.token}/respond", json={"action": "maybe"}, headers={"X-CSRF-Token": csrf_token}
        )
        assert response.status_code == 400

    async def test_expired(self, client, make_approval, csrf_token):
        expired = await make_approval(expires_at=utc_now() - timedelta(hours=2))
        response = await client.post(
            f"{BASE}/{expired.token}/respond", json={"action": "approve"}, headers={"X-CSRF-Token": csrf_token}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "APPROVAL_EXPIRED"

    async def test_second_response(self, client, approval, csrf_token):
        headers = {"X-CSRF-Token": csrf_token}
        await client.post(f"{BASE}/{approval.token}/respond", json={"action": "approve"}, headers=headers)
        response = await client.post(f"{BASE}/{approval.token}/respond", json={"action": "approve"}, headers=headers)
        assert response.json()["error"]["code"] == "ALREADY_RESPONDED"


class TestTeamEndpoints:
    """Test endpoints used by the design team."""

    async def test_list_requires_login(self, client, approval):
        response = await client.get(BASE)
        assert response.status_code == 401

    async def test_list(self, client, owner_headers, make_approval):
        await make_approval()
        await make_approval(status="APPROVED")

        response = await client.get(BASE, params={"status": "APPROVED"}, headers=owner_headers)

        assert response.status_code == 200
        page = response.json()["data"]
        assert page["total"] == 1
        assert page["items"][0]["status"] == "APPROVED"
        assert page["items"][0]["projectReference"] == "PRJ-2026-001"

    async def test_collection_is_served_without_redirect(self, client, owner_headers, approval):
        response = await client.get(BASE, headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 1

    async def test_remind(self, client, owner_headers, approval, email_service):
        response = await client.post(f"{BASE}/{approval.id}/remind", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"message": "Reminder sent successfully", "reminderCount": 1}
        assert email_service.sent[0]["to"] == ["john.smith@example.test"]

    async def test_remind_answered_approval(self, client, owner_headers, make_approval):
        answered = await make_approval(status="APPROVED")
        response = await client.post(f"{BASE}/{answered.id}/remind", headers=owner_headers)
        assert response.status_code == 404

    async def test_remind_requires_csrf(self, client, owner_headers, approval):
        headers = {"Authorization": owner_headers["Authorization"]}
        response = await client.post(f"{BASE}/{approval.id}/remind", headers=headers)
        assert response.status_code == 403

    async def test_resubmit(self, client, owner_headers, make_approval, email_service):
        approval = await make_approval(status="CHANGES_REQUESTED", response_notes="Wider doors please")

        response = await client.post(
            f"{BASE}/{approval.id}/resubmit",
            json={"deliverableUrl": "https://files.example.com/rev2.pdf", "expiresInDays": 10},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "PENDING"
        assert data["revision"] == 2
        assert data["approvalUrl"] == f"http://localhost:5173/approve/{approval.token}"
        assert email_service.subjects() == ["Approval Required: Hartley Road Extension - Initial Drawings"]

    @pytest.mark.parametrize("body", [{"expiresInDays": 0}, {"deliverableUrl": "ftp://files.example.com/a.pdf"}])
    async def test_resubmit_validation(self, client, owner_headers, make_approval, body):
        approval = await make_approval(status="CHANGES_REQUESTED")
        response = await client.post(f"{BASE}/{approval.id}/resubmit", json=body, headers=owner_headers)
        assert response.status_code == 400

    async def test_resubmit_pending(self, client, owner_headers, approval):
        response = await client.post(f"{BASE}/{approval.id}/resubmit", json={}, headers=owner_headers)
        assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"
