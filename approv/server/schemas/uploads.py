"""
Upload API Schemas.
"""

from typing import Literal

from pydantic import Field

from .common import ApiModel

UploadKind = Literal["deliverable", "logo", "document"]


class StorageStatus(ApiModel):
    configured: bool


class PresignRequest(ApiModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=100)
    type: UploadKind = "deliverable"


class PresignResult(ApiModel):
    upload_url: str
    key: str
    expires_in: int


class ConfirmRequest(ApiModel):
    key: str = Field(..., min_length=1, max_length=500)


class ConfirmResult(ApiModel):
    key: str
    download_url: str


class DeleteResult(ApiModel):
    deleted: bool
