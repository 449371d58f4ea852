"""
Monday.com Service.

OAuth connection and approval status sync with a Monday.com board over the
GraphQL API.
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from approv.core.errors import ExternalServiceError, ValidationError
from approv.core.logging_config import get_logger
from approv.core.models.domain.enums import ApprovalStatus
from approv.server.core.config import MondayConfig, settings

logger = get_logger(__name__)

MONDAY_STATUS_LABELS = {
    ApprovalStatus.APPROVED: "Approved",
    ApprovalStatus.CHANGES_REQUESTED: "Changes Requested",
}

BOARDS_QUERY = "query { boards(limit: 50) { id name } }"
COLUMNS_QUERY = "query ($boardId: [ID!]) { boards(ids: $boardId) { columns { id title type } } }"
CHANGE_COLUMN_MUTATION = (
    "mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: JSON!) "
    "{ change_column_value(board_id: $boardId, item_id: $itemId, column_id: $columnId, value: $value) { id } }"
)


def find_status_column(columns: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """First status-type column whose title mentions status or approval."""
    for column in columns:
        title = (column.get("title") or "").lower()
        if column.get("type") == "status" and ("status" in title or "approval" in title):
            return column
    return None


class MondayService:
    """Thin async client for Monday.com OAuth and GraphQL."""

    def __init__(
        self,
        config: MondayConfig,
        auth_url: str = "https://auth.monday.com",
        api_url: str = "https://api.monday.com/v2",
        redirect_uri: str = "https://approv.co.uk/dashboard/settings/monday/callback",
        timeout: float = 15.0,
    ) -> None:
        self.config = config
        self.auth_url = auth_url.rstrip("/")
        self.api_url = api_url
        self.redirect_uri = config.redirect_uri or redirect_uri
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.config.client_id and self.config.client_secret)

    def get_auth_url(self, state: str) -> str:
        if not self.config.client_id:
            raise ValidationError("Monday.com not configured", code="MONDAY_NOT_CONFIGURED")
        params = urlencode({"client_id": self.config.client_id, "redirect_uri": self.redirect_uri, "state": state})
        return f"{self.auth_url}/oauth2/authorize?{params}"

    async def exchange_code(self, code: str) -> Optional[str]:
        """Trade an OAuth code for an access token. Returns None when Monday refuses."""
        if not self.configured:
            raise ValidationError("Monday.com not configured", code="MONDAY_NOT_CONFIGURED")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.auth_url}/oauth2/token",
                    data={
                        "code": code,
                        "client_id": self.config.client_id,
                        "client_secret": self.config.client_secret,
                        "redirect_uri": self.redirect_uri,
                    },
                )
                response.raise_for_status()
                return response.json().get("access_token")
        except httpx.HTTPError as e:
            logger.error(f"Failed to exchange Monday code: {e}")
            return None

    async def query(self, token: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run one GraphQL operation.

        Raises:
            ExternalServiceError: On HTTP failures or GraphQL errors
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json={"query": query, "variables": variables or {}},
                    headers={"Authorization": token, "Content-Type": "application/json"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise ExternalServiceError("Monday.com", f"Monday API error: {e}") from e

        if payload.get("errors"):
            raise ExternalServiceError("Monday.com", payload["errors"][0].get("message") or "Monday API error")
        return payload.get("data") or {}

    async def get_boards(self, token: str) -> List[Dict[str, Any]]:
        data = await self.query(token, BOARDS_QUERY)
        return data.get("boards") or []

    async def get_board_columns(self, token: str, board_id: str) -> List[Dict[str, Any]]:
        data = await self.query(token, COLUMNS_QUERY, {"boardId": [board_id]})
        boards = data.get("boards") or []
        return boards[0].get("columns") or [] if boards else []

    async def update_item_status(self, token: str, board_id: str, item_id: str, column_id: str, label: str) -> bool:
        try:
            await self.query(
                token,
                CHANGE_COLUMN_MUTATION,
                {"boardId": board_id, "itemId": item_id, "columnId": column_id, "value": json.dumps({"label": label})},
            )
        except ExternalServiceError as e:
            logger.error(f"Failed to update Monday item {item_id} to '{label}': {e.message}")
            return False
        logger.info(f"Monday item {item_id} status updated to '{label}'")
        return True

    async def sync_approval(
        self,
        *,
        token: Optional[str],
        board_id: Optional[str],
        item_id: str,
        status: ApprovalStatus,
    ) -> bool:
        """Mirror an approval response onto the project's Monday item."""
        if not token or not board_id:
            logger.debug("Monday not connected; skipping approval sync")
            return False
        label = MONDAY_STATUS_LABELS.get(status)
        if label is None:
            return False

        try:
            columns = await self.get_board_columns(token, board_id)
        except ExternalServiceError as e:
            logger.error(f"Could not load Monday board {board_id} columns: {e.message}")
            return False

        column = find_status_column(columns)
        if column is None:
            logger.warning(f"No status column found in Monday board {board_id}")
            return False
        return await self.update_item_status(token, board_id, item_id, column["id"], label)


_monday_service: Optional[MondayService] = None


def get_monday_service() -> MondayService:
    global _monday_service
    if _monday_service is None:
        _monday_service = MondayService(settings.monday)
    return _monday_service
