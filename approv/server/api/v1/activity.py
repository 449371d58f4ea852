"""
Activity Log API Endpoints.

This module provides the organization's full audit trail for the activity page.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Query

from approv.server.schemas.common import ApiResponse, Page
from approv.server.schemas.dashboard import ActivityLogItem
from approv.server.services.dashboard import list_activity_log
from approv.server.services.deps import CurrentUserDep, ReposDep

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[Page[ActivityLogItem]],
    summary="List Activity",
    description="Audit entries of the organization, newest first. `action` matches any part of the action name.",
    response_description="A page of audit entries.",
)
async def list_activity(
    repos: ReposDep,
    auth: CurrentUserDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=100)] = 50,
    entity_type: Annotated[Optional[str], Query(alias="entityType", max_length=50)] = None,
    action: Annotated[Optional[str], Query(max_length=100)] = None,
):
    result = await list_activity_log(
        repos, auth.organization.id, page=page, page_size=page_size, entity_type=entity_type, action=action
    )
    return ApiResponse(data=result)
