"""
Tests for the notifications API endpoints.
"""

from approv.core.database.entities.email_templates import EmailTemplate

BASE = "/api/notifications"


class TestSendEmail:
    async def test_renders_default_template(self, client, owner_headers, email_service):
        response = await client.post(
            f"{BASE}/email",
            json={
                "template": "approval_request",
                "to": "john.smith@example.test",
                "data": {"projectName": "Hartley Road", "stageName": "Initial Drawings", "clientName": "John"},
            },
            headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"messageId": "msg_1", "status": "sent"}
        assert email_service.subjects() == ["Approval Required: Hartley Road - Initial Drawings"]

    async def test_custom_template_wins(self, client, repos, organization, owner_headers, email_service):
        await repos.email_templates.create(
            EmailTemplate(
                organization_id=organization.id,
                name="Custom reminder",
                slug="approval_reminder",
                subject="Nudge for {{projectName}}",
                body_html="<p>Hi {{clientName}}</p>",
                is_custom=True,
            )
        )

        await client.post(
            f"{BASE}/email",
            json={"template": "approval_reminder", "to": "a@example.test", "data": {"projectName": "Mill"}},
            headers=owner_headers,
        )

        assert email_service.subjects() == ["Nudge for Mill"]

    async def test_custom_template_values_are_escaped(self, client, repos, organization, owner_headers, email_service):
        await repos.email_templates.create(
            EmailTemplate(
                organization_id=organization.id,
                name="Custom reminder",
                slug="approval_reminder",
                subject="Nudge for {{projectName}}",
                body_html="<p>{% if clientName %}Hi {{clientName}}{% else %}Hello{% endif %}</p>",
                is_custom=True,
            )
        )

        await client.post(
            f"{BASE}/email",
            json={"template": "approval_reminder", "to": "a@example.test", "data": {"clientName": "<b>Tom</b>"}},
            headers=owner_headers,
        )

        assert email_service.sent[0]["html"] == "<p>Hi &lt;b&gt;Tom&lt;/b&gt;</p>"

    async def test_broken_custom_template(self, client, repos, organization, owner_headers, email_service):
        await repos.email_templates.create(
            EmailTemplate(
                organization_id=organization.id,
                name="Broken reminder",
                slug="approval_reminder",
                subject="Nudge for {{projectName",
                body_html="<p>Hi</p>",
                is_custom=True,
            )
        )

        response = await client.post(
            f"{BASE}/email", json={"template": "approval_reminder", "to": "a@example.test"}, headers=owner_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert email_service.sent == []

    async def test_unknown_template(self, client, owner_headers):
        response = await client.post(
            f"{BASE}/email", json={"template": "weekly_digest", "to": "a@example.test"}, headers=owner_headers
        )
        assert response.status_code == 400

    async def test_provider_failure(self, client, owner_headers, email_service):
        email_service.fail = True
        response = await client.post(
            f"{BASE}/email", json={"template": "approval_request", "to": "a@example.test"}, headers=owner_headers
        )
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


class TestSendReminder:
    async def test_records_custom_reminder(self, client, owner_headers, approval, repos):
        response = await client.post(f"{BASE}/reminder", json={"approvalId": approval.id}, headers=owner_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["sentVia"] == ["email"]
        reminders = await repos.reminders.list_for_approval(approval.id)
        assert [(r.id, r.type) for r in reminders] == [(data["reminderId"], "CUSTOM")]

    async def test_unknown_approval(self, client, owner_headers):
        response = await client.post(f"{BASE}/reminder", json={"approvalId": "missing"}, headers=owner_headers)
        assert response.status_code == 404


class TestSlack:
    async def test_not_configured(self, client, owner_headers):
        response = await client.post(f"{BASE}/slack", json={"message": "Client approved"}, headers=owner_headers)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SLACK_NOT_CONFIGURED"

    async def test_posts_message(self, client, repos, organization, owner_headers, slack_service):
        organization.slack_bot_token = "xoxb-test"
        organization.slack_channel_id = "C0123"
        await repos.organizations.update(organization)

        response = await client.post(f"{BASE}/slack", json={"message": "Client approved"}, headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"channel": "C0123", "ts": "1700000000.000100"}
        assert slack_service.messages == [{"bot_token": "xoxb-test", "channel": "C0123", "text": "Client approved"}]


class TestPreferences:
    async def test_get(self, client, owner_headers):
        response = await client.get(f"{BASE}/preferences", headers=owner_headers)
        assert response.json()["data"] == {"email": True, "slack": False, "dailyDigest": False}

    async def test_update(self, client, owner_headers, repos, owner):
        response = await client.patch(
            f"{BASE}/preferences", json={"email": False, "dailyDigest": True}, headers=owner_headers
        )

        assert response.json()["data"] == {"email": False, "slack": False, "dailyDigest": True}
        opted_in = await repos.users.list_active_by_organization(owner.organization_id, email_opt_in_only=True)
        assert opted_in == []


class TestTemplates:
    async def test_admin_only(self, client, member_headers):
        response = await client.get(f"{BASE}/templates", headers=member_headers)
        assert response.status_code == 403

    async def test_lists_custom_templates(self, client, repos, organization, owner_headers):
        await repos.email_templates.create(
            EmailTemplate(
                organization_id=organization.id,
                name="Custom request",
                slug="approval_request",
                subject="{{projectName}}",
                body_html="<p></p>",
                is_custom=True,
            )
        )

        response = await client.get(f"{BASE}/templates", headers=owner_headers)

        assert [t["slug"] for t in response.json()["data"]] == ["approval_request"]
