"""Initial schema and seed data for Approv

Revision ID: 20260301_000000
Revises: None
Create Date: 2026-03-01 00:00:00.000000

This is the initial migration that creates all necessary tables and seeds demo data
for the Approv service. This includes:
- Tenant tables (organizations, users, email templates)
- Practice tables (clients, projects, project members)
- Approval tables (approvals, reminders)
- Security and audit tables (audit logs, CSRF tokens)
- A demo practice with two team members, two clients, three projects and their approvals

Revision format: YYYYMMDD_HHMMSS_description

"""

from datetime import datetime, timedelta, timezone
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260301_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _seed_id(name: str) -> str:
    """Fixed demo id in the ``c`` + 24 ``[a-z0-9]`` shape of generated ids."""
    return "c" + name.ljust(24, "0")[:24]


def upgrade() -> None:
    """Create all tables and seed demo data."""

    # Create organizations table
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("plan", sa.String(32), nullable=False, server_default="FREE"),
        sa.Column("logo", sa.String(500), nullable=True),
        sa.Column("primary_color", sa.String(7), nullable=True),
        sa.Column("email_footer_text", sa.String(500), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("default_expiry_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("reminder_days", sa.String(100), nullable=False, server_default="[3,7,10]"),
        sa.Column("slack_bot_token", sa.String(500), nullable=True),
        sa.Column("slack_channel_id", sa.String(100), nullable=True),
        sa.Column("monday_api_token", sa.String(1000), nullable=True),
        sa.Column("monday_board_id", sa.String(100), nullable=True),
        sa.Column("monday_oauth_state", sa.String(200), nullable=True),
        sa.Column("dropbox_access_token", sa.String(2000), nullable=True),
        sa.Column("dropbox_refresh_token", sa.String(2000), nullable=True),
        sa.Column("dropbox_token_expiry", sa.DateTime(), nullable=True),
        sa.Column("dropbox_oauth_state", sa.String(200), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_organizations_slug", "slug", unique=True),
        sa.Index("ix_organizations_created_at", "created_at"),
    )

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("external_id", sa.String(128), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("avatar_url", sa.String(1000), nullable=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="MEMBER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("slack_notifications", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("daily_digest", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_external_id", "external_id", unique=True),
        sa.Index("ix_users_organization_id", "organization_id"),
        sa.Index("ix_users_created_at", "created_at"),
    )

    # Create clients table
    op.create_table(
        "clients",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("company", sa.String(200), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("portal_token", sa.String(64), nullable=True),
        sa.Column("portal_token_expiry", sa.DateTime(), nullable=True),
        sa.Column("last_portal_access", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "email", name="uq_clients_organization_email"),
        sa.Index("ix_clients_organization_id", "organization_id"),
        sa.Index("ix_clients_portal_token", "portal_token", unique=True),
        sa.Index("ix_clients_created_at", "created_at"),
    )

    # Create projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("client_id", sa.String(64), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("reference", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="ACTIVE"),
        sa.Column("current_stage", sa.String(32), nullable=False, server_default="INITIAL_DRAWINGS"),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("target_completion_date", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("monday_item_id", sa.String(100), nullable=True),
        sa.Column("monday_last_sync_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "reference", name="uq_projects_organization_reference"),
        sa.Index("ix_projects_organization_id", "organization_id"),
        sa.Index("ix_projects_client_id", "client_id"),
        sa.Index("ix_projects_status", "status"),
        sa.Index("ix_projects_monday_item_id", "monday_item_id"),
        sa.Index("ix_projects_created_at", "created_at"),
    )

    # Create project_members table
    op.create_table(
        "project_members",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("project_id", sa.String(64), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="MEMBER"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        sa.Index("ix_project_members_project_id", "project_id"),
        sa.Index("ix_project_members_user_id", "user_id"),
    )

    # Create approvals table
    op.create_table(
        "approvals",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("project_id", sa.String(64), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("client_id", sa.String(64), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("sent_by_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("stage", sa.String(32), nullable=False),
        sa.Column("stage_label", sa.String(100), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="PENDING"),
        sa.Column("deliverable_url", sa.String(2000), nullable=True),
        sa.Column("deliverable_type", sa.String(16), nullable=True),
        sa.Column("deliverable_name", sa.String(200), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("response_notes", sa.Text(), nullable=True),
        sa.Column("response_time_hours", sa.Float(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("viewed_at", sa.DateTime(), nullable=True),
        sa.Column("reminder_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_reminder_at", sa.DateTime(), nullable=True),
        sa.Column("revision", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("resubmitted_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_approvals_token", "token", unique=True),
        sa.Index("ix_approvals_project_id", "project_id"),
        sa.Index("ix_approvals_client_id", "client_id"),
        sa.Index("ix_approvals_status", "status"),
        sa.Index("ix_approvals_expires_at", "expires_at"),
        sa.Index("ix_approvals_created_at", "created_at"),
    )

    # Create reminders table
    op.create_table(
        "reminders",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("approval_id", sa.String(64), sa.ForeignKey("approvals.id"), nullable=False),
        sa.Column("sent_by_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("channel", sa.String(16), nullable=False, server_default="EMAIL"),
        sa.Column("scheduled_for", sa.DateTime(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_reminders_approval_id", "approval_id"),
    )

    # Create audit_logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("project_id", sa.String(64), nullable=True),
        sa.Column("approval_id", sa.String(64), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("metadata", sa.Text(), nullable=True),
        sa.Column("previous_state", sa.Text(), nullable=True),
        sa.Column("new_state", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_logs_action", "action"),
        sa.Index("ix_audit_logs_entity_type", "entity_type"),
        sa.Index("ix_audit_logs_entity_id", "entity_id"),
        sa.Index("ix_audit_logs_organization_id", "organization_id"),
        sa.Index("ix_audit_logs_project_id", "project_id"),
        sa.Index("ix_audit_logs_created_at", "created_at"),
    )

    # Create csrf_tokens table
    op.create_table(
        "csrf_tokens",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(128), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_csrf_tokens_token", "token", unique=True),
        sa.Index("ix_csrf_tokens_expires_at", "expires_at"),
    )

    # Create email_templates table
    op.create_table(
        "email_templates",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("subject", sa.String(300), nullable=False),
        sa.Column("body_html", sa.Text(), nullable=False),
        sa.Column("body_text", sa.Text(), nullable=True),
        sa.Column("is_custom", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "slug", name="uq_email_templates_organization_slug"),
        sa.Index("ix_email_templates_organization_id", "organization_id"),
    )

    _seed_demo_practice()


def _seed_demo_practice() -> None:
    """Seed a demo practice for development and demos."""
    now = datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)

    org_id = _seed_id("demoarchitects")
    owner_id = _seed_id("demoowner")
    architect_id = _seed_id("demoarchitect")
    client1_id = _seed_id("democlientsmith")
    client2_id = _seed_id("democlientjones")
    project1_id = _seed_id("demoprojectriverside")
    project2_id = _seed_id("demoprojectoakwood")
    project3_id = _seed_id("demoprojectvictoria")

    organizations = sa.table(
        "organizations",
        sa.column("id"),
        sa.column("name"),
        sa.column("slug"),
        sa.column("plan"),
        sa.column("primary_color"),
        sa.column("default_expiry_days"),
        sa.column("reminder_days"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )
    op.bulk_insert(
        organizations,
        [
            {
                "id": org_id,
                "name": "Demo Architects Ltd",
                "slug": "demo-architects",
                "plan": "FREE",
                "primary_color": "#16a34a",
                "default_expiry_days": 14,
                "reminder_days": "[3,7,10]",
                "created_at": now,
                "updated_at": now,
            }
        ],
    )

    users = sa.table(
        "users",
        sa.column("id"),
        sa.column("external_id"),
        sa.column("organization_id"),
        sa.column("email"),
        sa.column("first_name"),
        sa.column("last_name"),
        sa.column("role"),
        sa.column("is_active"),
        sa.column("email_notifications"),
        sa.column("slack_notifications"),
        sa.column("daily_digest"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )
    user_defaults = {
        "organization_id": org_id,
        "is_active": True,
        "email_notifications": True,
        "slack_notifications": False,
        "daily_digest": False,
        "created_at": now,
        "updated_at": now,
    }
    op.bulk_insert(
        users,
        [
            {
                **user_defaults,
                "id": owner_id,
                "external_id": "user_demo_owner",
                "email": "owner@demo-architects.co.uk",
                "first_name": "Sarah",
                "last_name": "Mitchell",
                "role": "OWNER",
            },
            {
                **user_defaults,
                "id": architect_id,
                "external_id": "user_demo_architect",
                "email": "james@demo-architects.co.uk",
                "first_name": "James",
                "last_name": "Wilson",
                "role": "MEMBER",
            },
        ],
    )

    clients = sa.table(
        "clients",
        sa.column("id"),
        sa.column("organization_id"),
        sa.column("first_name"),
        sa.column("last_name"),
        sa.column("email"),
        sa.column("phone"),
        sa.column("company"),
        sa.column("created_by"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )
    op.bulk_insert(
        clients,
        [
            {
                "id": client1_id,
                "organization_id": org_id,
                "first_name": "John",
                "last_name": "Smith",
                "email": "john.smith@example.com",
                "phone": "+447700900123",
                "company": "Smith Developments",
                "created_by": owner_id,
                "created_at": now,
                "updated_at": now,
            },
            {
                "id": client2_id,
                "organization_id": org_id,
                "first_name": "Emma",
                "last_name": "Jones",
                "email": "emma.jones@example.com",
                "phone": "+447700900456",
                "company": "Jones Property Group",
                "created_by": owner_id,
                "created_at": now,
                "updated_at": now,
            },
        ],
    )

    projects = sa.table(
        "projects",
        sa.column("id"),
        sa.column("organization_id"),
        sa.column("client_id"),
        sa.column("name"),
        sa.column("reference"),
        sa.column("description"),
        sa.column("address"),
        sa.column("status"),
        sa.column("current_stage"),
        sa.column("start_date"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )
    project_defaults = {
        "organization_id": org_id,
        "status": "ACTIVE",
        "start_date": now,
        "created_at": now,
        "updated_at": now,
    }
    op.bulk_insert(
        projects,
        [
            {
                **project_defaults,
                "id": project1_id,
                "client_id": client1_id,
                "name": "Riverside House Extension",
                "reference": "PRJ-2024-001",
                "description": "Two-storey rear extension with contemporary design",
                "address": "42 Riverside Drive, London, SW15 2NU",
                "current_stage": "DETAILED_DESIGN",
            },
            {
                **project_defaults,
                "id": project2_id,
                "client_id": client2_id,
                "name": "Oakwood Barn Conversion",
                "reference": "PRJ-2024-002",
                "description": "Grade II listed barn conversion to residential",
                "address": "15 Church Lane, Guildford, GU1 3RH",
                "current_stage": "PLANNING_PACK",
            },
            {
                **project_defaults,
                "id": project3_id,
                "client_id": client1_id,
                "name": "Victoria Terrace Renovation",
                "reference": "PRJ-2024-003",
                "description": "Full renovation of Victorian terraced house",
                "address": "8 Victoria Terrace, Brighton, BN1 4ED",
                "current_stage": "INITIAL_DRAWINGS",
            },
        ],
    )

    project_members = sa.table(
        "project_members",
        sa.column("id"),
        sa.column("project_id"),
        sa.column("user_id"),
        sa.column("role"),
        sa.column("created_at"),
    )
    memberships = [
        (project1_id, owner_id, "LEAD"),
        (project1_id, architect_id, "MEMBER"),
        (project2_id, architect_id, "LEAD"),
        (project3_id, owner_id, "LEAD"),
    ]
    op.bulk_insert(
        project_members,
        [
            {"id": _seed_id(f"demomember{n}"), "project_id": project, "user_id": user, "role": role, "created_at": now}
            for n, (project, user, role) in enumerate(memberships, start=1)
        ],
    )

    approvals = sa.table(
        "approvals",
        sa.column("id"),
        sa.column("token"),
        sa.column("project_id"),
        sa.column("client_id"),
        sa.column("sent_by_id"),
        sa.column("stage"),
        sa.column("stage_label"),
        sa.column("status"),
        sa.column("deliverable_url"),
        sa.column("deliverable_type"),
        sa.column("deliverable_name"),
        sa.column("expires_at"),
        sa.column("responded_at"),
        sa.column("response_notes"),
        sa.column("response_time_hours"),
        sa.column("view_count"),
        sa.column("viewed_at"),
        sa.column("reminder_count"),
        sa.column("last_reminder_at"),
        sa.column("revision"),
        sa.column("created_at"),
        sa.column("updated_at"),
    )

    def approval(number: int, **values) -> dict:
        row = {
            "id": _seed_id(f"demoapproval{number}"),
            "token": _seed_id(f"demotoken{number}"),
            "deliverable_url": None,
            "deliverable_type": None,
            "deliverable_name": None,
            "responded_at": None,
            "response_notes": None,
            "response_time_hours": None,
            "viewed_at": None,
            "reminder_count": 0,
            "last_reminder_at": None,
            "revision": 1,
            "expires_at": now + timedelta(days=30),
            "created_at": now,
            "updated_at": now,
        }
        row.update(values)
        return row

    op.bulk_insert(
        approvals,
        [
            approval(
                1,
                project_id=project1_id,
                client_id=client1_id,
                sent_by_id=owner_id,
                stage="INITIAL_DRAWINGS",
                stage_label="Initial Drawings",
                status="APPROVED",
                deliverable_url="https://example.com/drawings/initial-001.pdf",
                deliverable_type="PDF",
                deliverable_name="Initial Concept Drawings v1.0",
                responded_at=now - timedelta(days=7),
                response_notes="Love the design direction. Approved!",
                response_time_hours=48.5,
                view_count=5,
                created_at=now - timedelta(days=9),
            ),
            approval(
                2,
                project_id=project1_id,
                client_id=client1_id,
                sent_by_id=architect_id,
                stage="DETAILED_DESIGN",
                stage_label="Detailed Design",
                status="PENDING",
                deliverable_url="https://example.com/drawings/detailed-001.pdf",
                deliverable_type="PDF",
                deliverable_name="Detailed Design Package v1.0",
                view_count=2,
                viewed_at=now - timedelta(days=1),
                expires_at=now + timedelta(days=10),
                created_at=now - timedelta(days=2),
            ),
            approval(
                3,
                project_id=project2_id,
                client_id=client2_id,
                sent_by_id=architect_id,
                stage="INITIAL_DRAWINGS",
                stage_label="Initial Drawings",
                status="APPROVED",
                responded_at=now - timedelta(days=14),
                response_time_hours=72,
                view_count=3,
                created_at=now - timedelta(days=17),
            ),
            approval(
                4,
                project_id=project2_id,
                client_id=client2_id,
                sent_by_id=architect_id,
                stage="DETAILED_DESIGN",
                stage_label="Detailed Design",
                status="APPROVED",
                responded_at=now - timedelta(days=5),
                response_time_hours=36,
                view_count=4,
                created_at=now - timedelta(days=7),
            ),
            approval(
                5,
                project_id=project2_id,
                client_id=client2_id,
                sent_by_id=architect_id,
                stage="PLANNING_PACK",
                stage_label="Planning Pack",
                status="CHANGES_REQUESTED",
                responded_at=now - timedelta(days=2),
                response_notes=(
                    "Could we revisit the window placement on the north elevation? "
                    "Concerned about overlooking neighbours."
                ),
                response_time_hours=24,
                view_count=6,
                created_at=now - timedelta(days=3),
            ),
            approval(
                6,
                project_id=project3_id,
                client_id=client1_id,
                sent_by_id=owner_id,
                stage="INITIAL_DRAWINGS",
                stage_label="Initial Drawings",
                status="PENDING",
                deliverable_url="https://example.com/drawings/victoria-initial.pdf",
                deliverable_type="PDF",
                deliverable_name="Initial Concept Drawings",
                view_count=1,
                viewed_at=now - timedelta(days=4),
                reminder_count=1,
                last_reminder_at=now - timedelta(days=2),
                expires_at=now + timedelta(days=9),
                created_at=now - timedelta(days=5),
            ),
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("email_templates")
    op.drop_table("csrf_tokens")
    op.drop_table("audit_logs")
    op.drop_table("reminders")
    op.drop_table("approvals")
    op.drop_table("project_members")
    op.drop_table("projects")
    op.drop_table("clients")
    op.drop_table("users")
    op.drop_table("organizations")
