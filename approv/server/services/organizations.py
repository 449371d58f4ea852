"""
Organization Service.

Read and update the signed-in user's organization profile and branding.
"""

from approv.core.audit import AuditEntry, log_audit
from approv.core.database.repositories.bundle import SqlRepoBundle
from approv.core.logging_config import get_logger
from approv.server.schemas.organizations import OrganizationUpdate, OrganizationView

from .approvals import RequestMeta
from .auth import AuthContext

logger = get_logger(__name__)


def get_current(auth: AuthContext) -> OrganizationView:
    return OrganizationView.model_validate(auth.organization)


async def update_current(
    repos: SqlRepoBundle, auth: AuthContext, body: OrganizationUpdate, meta: RequestMeta
) -> OrganizationView:
    organization = auth.organization
    changes = body.model_dump(mode="json", exclude_unset=True)
    previous = {name: getattr(organization, name) for name in changes}

    for name, value in changes.items():
        if value is None and name in ("name", "default_expiry_days"):
            continue
        setattr(organization, name, value)
    organization = await repos.organizations.update(organization)
    view = OrganizationView.model_validate(organization)

    await log_audit(
        repos.session,
        AuditEntry(
            action="organization.updated",
            entity_type="organization",
            entity_id=view.id,
            organization_id=view.id,
            user_id=auth.user.id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            previous_state=previous,
            new_state=changes,
        ),
    )
    logger.info("Organization updated", extra={"organization_id": view.id, "fields": sorted(changes)})
    return view
