"""
File Storage Service.

Uploads go straight from the browser to Cloudflare R2 using presigned URLs,
so file bytes never pass through the API. R2 speaks the S3 protocol, so the
service is a small wrapper around a boto3 S3 client.
"""

import asyncio
import os
import uuid
from functools import cached_property
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from approv.core.errors import ExternalServiceError, ValidationError
from approv.core.logging_config import get_logger
from approv.server.core.config import StorageConfig, settings

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/webp",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
ALLOWED_EXTENSIONS = frozenset({"pdf", "jpg", "jpeg", "png", "webp", "docx", "xlsx"})


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lstrip(".").lower()


def validate_upload(filename: str, content_type: str) -> str:
    """
    Check the file type of an upload request.

    Returns:
        The lower-cased file extension

    Raises:
        ValidationError: When the MIME type or extension is not allowed
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("File type not allowed", details={"contentType": content_type})
    extension = file_extension(filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError("File extension not allowed", details={"filename": filename})
    return extension


def build_object_key(organization_id: str, upload_type: str, extension: str) -> str:
    return f"{organization_id}/{upload_type}/{uuid.uuid4()}.{extension}"


def owns_key(organization_id: str, key: str) -> bool:
    return key.startswith(f"{organization_id}/")


class StorageService:
    """Presigned URL helper for the R2 bucket."""

    def __init__(self, config: StorageConfig) -> None:
        self.config = config

    @property
    def configured(self) -> bool:
        return self.config.configured

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.config.account_id}.r2.cloudflarestorage.com"

    @cached_property
    def client(self):
        return boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.secret_access_key,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )

    def _require_configured(self) -> None:
        if not self.configured:
            raise ValidationError("Storage not configured", code="STORAGE_NOT_CONFIGURED")

    def presign_upload(self, key: str, content_type: str, expires_in: Optional[int] = None) -> str:
        """Presigned ``PUT`` URL for uploading one object."""
        self._require_configured()
        return self.client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.config.bucket_name, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in or self.config.url_expiry_seconds,
        )

    def presign_download(self, key: str, expires_in: Optional[int] = None) -> str:
        """Presigned ``GET`` URL for reading one object."""
        self._require_configured()
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.config.bucket_name, "Key": key},
            ExpiresIn=expires_in or self.config.url_expiry_seconds,
        )

    async def delete(self, key: str) -> None:
        self._require_configured()
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.config.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key} from R2: {e}")
            raise ExternalServiceError("Storage", "Failed to delete file") from e
        logger.info(f"Deleted file {key}")


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService(settings.storage)
    return _storage_service
