"""
Uploads API Endpoints.

This module provides presigned R2 upload and download URLs. Object keys are
prefixed with the organization id, and a team member can only confirm or
delete keys of their own organization.
"""

from fastapi import APIRouter

from approv.core.errors import ValidationError
from approv.core.logging_config import get_logger
from approv.server.schemas.common import ApiResponse
from approv.server.schemas.uploads import (
    ConfirmRequest,
    ConfirmResult,
    DeleteResult,
    PresignRequest,
    PresignResult,
    StorageStatus,
)
from approv.server.services.deps import CurrentUserDep, StorageServiceDep
from approv.server.services.storage import build_object_key, owns_key, validate_upload

logger = get_logger(__name__)

router = APIRouter()


def _require_own_key(organization_id: str, key: str) -> None:
    if not owns_key(organization_id, key):
        raise ValidationError("Invalid file key")


@router.get(
    "/status",
    response_model=ApiResponse[StorageStatus],
    summary="Storage Status",
    response_description="Whether file storage is configured.",
)
async def storage_status(auth: CurrentUserDep, storage: StorageServiceDep):
    return ApiResponse(data=StorageStatus(configured=storage.configured))


@router.post(
    "/presign",
    response_model=ApiResponse[PresignResult],
    summary="Presign Upload",
    description="Get a presigned URL the browser can PUT the file to.",
    response_description="The upload URL and the object key.",
    responses={400: {"description": "File type not allowed or storage not configured"}},
)
async def presign_upload(body: PresignRequest, auth: CurrentUserDep, storage: StorageServiceDep):
    extension = validate_upload(body.filename, body.content_type)
    key = build_object_key(auth.organization.id, body.type, extension)
    upload_url = storage.presign_upload(key, body.content_type)
    logger.info(
        "Presigned upload URL generated",
        extra={"user_id": auth.user.id, "upload_filename": body.filename, "type": body.type},
    )
    return ApiResponse(
        data=PresignResult(upload_url=upload_url, key=key, expires_in=storage.config.url_expiry_seconds)
    )


@router.post(
    "/confirm",
    response_model=ApiResponse[ConfirmResult],
    summary="Confirm Upload",
    description="Confirm a finished upload and get a presigned download URL for it.",
    response_description="The object key and its download URL.",
    responses={400: {"description": "Invalid file key"}},
)
async def confirm_upload(body: ConfirmRequest, auth: CurrentUserDep, storage: StorageServiceDep):
    _require_own_key(auth.organization.id, body.key)
    download_url = storage.presign_download(body.key)
    logger.info("Upload confirmed", extra={"user_id": auth.user.id, "key": body.key})
    return ApiResponse(data=ConfirmResult(key=body.key, download_url=download_url))


@router.delete(
    "/{key:path}",
    response_model=ApiResponse[DeleteResult],
    summary="Delete File",
    response_description="Deletion result.",
    responses={400: {"description": "Invalid file key"}, 502: {"description": "Storage provider error"}},
)
async def delete_file(key: str, auth: CurrentUserDep, storage: StorageServiceDep):
    _require_own_key(auth.organization.id, key)
    await storage.delete(key)
    return ApiResponse(data=DeleteResult(deleted=True))
