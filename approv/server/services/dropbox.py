"""
Dropbox Service.

OAuth connection to the practice's Dropbox account and filing of approved
deliverables under ``/Approv/{project}/{stage}/``.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import httpx

from approv.core.database.entities.organizations import Organization
from approv.core.database.repositories.organizations import OrganizationRepository
from approv.core.errors import ValidationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.lifecycle import utc_now
from approv.server.core.config import DropboxConfig, settings

logger = get_logger(__name__)

REFRESH_MARGIN = timedelta(minutes=5)
_UNSAFE_PATH_CHARS = re.compile(r'[<>:"/\\|?*]')


@dataclass(frozen=True)
class DropboxTokens:
    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None


def safe_path_segment(name: str) -> str:
    return _UNSAFE_PATH_CHARS.sub("_", name).strip()


def approval_file_path(project_name: str, stage_name: str, version: int, status: str, extension: str = "pdf") -> str:
    folder = f"/Approv/{safe_path_segment(project_name)}/{safe_path_segment(stage_name)}"
    return f"{folder}/v{version}_{status.lower()}.{extension}"


def needs_refresh(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True unless the stored token is valid for more than five more minutes."""
    if expiry is None:
        return True
    return expiry <= (now or utc_now()) + REFRESH_MARGIN


class DropboxService:
    """Thin async client for the Dropbox OAuth and files APIs."""

    def __init__(
        self,
        config: DropboxConfig,
        app_url: str,
        authorize_url: str = "https://www.dropbox.com/oauth2/authorize",
        api_url: str = "https://api.dropboxapi.com",
        content_url: str = "https://content.dropboxapi.com",
        timeout: float = 30.0,
    ) -> None:
        self.config = config
        self.redirect_uri = config.redirect_uri or f"{app_url.rstrip('/')}/dashboard/settings/dropbox/callback"
        self.authorize_url = authorize_url
        self.api_url = api_url.rstrip("/")
        self.content_url = content_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.config.app_key and self.config.app_secret)

    def _require_configured(self) -> None:
        if not self.configured:
            raise ValidationError("Dropbox not configured", code="DROPBOX_NOT_CONFIGURED")

    def get_auth_url(self, state: str) -> str:
        if not self.config.app_key:
            raise ValidationError("Dropbox not configured", code="DROPBOX_NOT_CONFIGURED")
        params = urlencode(
            {
                "client_id": self.config.app_key,
                "response_type": "code",
                "redirect_uri": self.redirect_uri,
                "state": state,
                "token_access_type": "offline",
            }
        )
        return f"{self.authorize_url}?{params}"

    async def _token_request(self, form: dict) -> Optional[DropboxTokens]:
        self._require_configured()
        form = {**form, "client_id": self.config.app_key, "client_secret": self.config.app_secret}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.api_url}/oauth2/token", data=form)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Dropbox token request ({form.get('grant_type')}) failed: {e}")
            return None
        return DropboxTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=utc_now() + timedelta(seconds=int(data.get("expires_in", 14400))),
        )

    async def exchange_code(self, code: str) -> Optional[DropboxTokens]:
        return await self._token_request(
            {"code": code, "grant_type": "authorization_code", "redirect_uri": self.redirect_uri}
        )

    async def refresh_access_token(self, refresh_token: str) -> Optional[DropboxTokens]:
        return await self._token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})

    async def get_valid_token(self, repo: OrganizationRepository, organization: Organization) -> Optional[str]:
        """
        Current access token for ``organization``, refreshed when close to expiry.

        A refreshed token is saved on the organization.
        """
        if not organization.dropbox_access_token or not organization.dropbox_refresh_token:
            return None
        if not needs_refresh(organization.dropbox_token_expiry):
            return organization.dropbox_access_token

        refreshed = await self.refresh_access_token(organization.dropbox_refresh_token)
        if refreshed is None:
            return None
        organization.dropbox_access_token = refreshed.access_token
        organization.dropbox_token_expiry = refreshed.expires_at
        await repo.update(organization)
        logger.info(f"Refreshed Dropbox token for organization {organization.id}")
        return refreshed.access_token

    async def upload_file(self, access_token: str, path: str, content: bytes) -> bool:
        arg = {"path": path, "mode": "add", "autorename": True, "mute": False}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.content_url}/2/files/upload",
                    content=content,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": "application/octet-stream",
                        "Dropbox-API-Arg": json.dumps(arg),
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to upload {path} to Dropbox: {e}")
            return False
        logger.info(f"File uploaded to Dropbox: {path}")
        return True

    async def create_folder(self, access_token: str, path: str) -> bool:
        """Create a folder. An existing folder (HTTP 409) counts as success."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/2/files/create_folder_v2",
                    json={"path": path, "autorename": False},
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Error creating Dropbox folder {path}: {e}")
            return False
        return response.is_success or response.status_code == 409

    async def sync_approval_file(
        self,
        access_token: str,
        *,
        project_name: str,
        stage_name: str,
        version: int,
        status: str,
        content: bytes,
        extension: str = "pdf",
    ) -> bool:
        """File a deliverable as ``/Approv/{project}/{stage}/v{version}_{status}.{ext}``."""
        project_folder = f"/Approv/{safe_path_segment(project_name)}"
        for folder in ("/Approv", project_folder, f"{project_folder}/{safe_path_segment(stage_name)}"):
            await self.create_folder(access_token, folder)
        return await self.upload_file(
            access_token, approval_file_path(project_name, stage_name, version, status, extension), content
        )


_dropbox_service: Optional[DropboxService] = None


def get_dropbox_service() -> DropboxService:
    global _dropbox_service
    if _dropbox_service is None:
        _dropbox_service = DropboxService(settings.dropbox, app_url=settings.app_url)
    return _dropbox_service
