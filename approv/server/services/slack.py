"""
Slack Service.

Posts messages to an organization's Slack channel with its bot token.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from approv.core.errors import ExternalServiceError
from approv.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SlackMessage:
    channel: str
    ts: Optional[str]


class SlackService:
    def __init__(self, api_url: str = "https://slack.com/api", timeout: float = 10.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def post_message(self, bot_token: str, channel: str, text: str) -> SlackMessage:
        """
        Call ``chat.postMessage``.

        Raises:
            ExternalServiceError: When Slack is unreachable or answers ``ok: false``
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/chat.postMessage",
                    json={"channel": channel, "text": text},
                    headers={"Authorization": f"Bearer {bot_token}"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Slack request failed: {e}")
            raise ExternalServiceError("Slack") from e

        if not payload.get("ok"):
            error = payload.get("error", "unknown_error")
            logger.error(f"Slack rejected message to {channel}: {error}")
            raise ExternalServiceError("Slack", f"Slack error: {error}")

        logger.info(f"Slack message posted to {channel}")
        return SlackMessage(channel=payload.get("channel") or channel, ts=payload.get("ts"))


_slack_service: Optional[SlackService] = None


def get_slack_service() -> SlackService:
    global _slack_service
    if _slack_service is None:
        _slack_service = SlackService()
    return _slack_service
