"""
Unit tests for writing audit entries to the database.
"""

from unittest.mock import patch

from approv.core.audit import REDACTED, AuditEntry, log_audit


class TestLogAudit:
    async def test_persists_redacted_entry(self, in_memory_session, repos, org, user, project_record):
        entry = AuditEntry(
            action="project.updated",
            entity_type="project",
            entity_id=project_record.id,
            organization_id=org.id,
            user_id=user.id,
            project_id=project_record.id,
            ip_address="203.0.113.7",
            user_agent="x" * 600,
            metadata={"name": "Garden Studio", "clientEmail": "emma@example.test"},
            previous_state={"status": "ACTIVE"},
            new_state={"status": "ON_HOLD", "accessToken": "abc"},
        )

        row = await log_audit(in_memory_session, entry)

        assert row is not None
        assert row.get_metadata_dict() == {"name": "Garden Studio", "clientEmail": REDACTED}
        assert row.get_previous_state_dict() == {"status": "ACTIVE"}
        assert row.get_new_state_dict() == {"status": "ON_HOLD", "accessToken": REDACTED}
        assert len(row.user_agent) == 500

        rows, total = await repos.audit_logs.list_activity(org.id)
        assert total == 1
        assert rows[0][0].action == "project.updated"

    async def test_entries_without_organization_are_only_logged(self, in_memory_session, repos, org):
        row = await log_audit(
            in_memory_session, AuditEntry(action="webhook.received", entity_type="webhook", entity_id="evt_1")
        )
        assert row is None
        assert (await repos.audit_logs.list_activity(org.id))[1] == 0

    async def test_write_failure_is_swallowed(self, in_memory_session, org):
        entry = AuditEntry(action="client.created", entity_type="client", entity_id="c1", organization_id=org.id)
        with patch.object(in_memory_session, "commit", side_effect=RuntimeError("disk full")):
            assert await log_audit(in_memory_session, entry) is None
