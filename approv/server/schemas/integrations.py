"""
Monday.com and Dropbox integration API Schemas.
"""

from typing import Optional

from pydantic import Field

from .common import ApiModel


class IntegrationStatus(ApiModel):
    connected: bool
    board_id: Optional[str] = None


class AuthorizeUrl(ApiModel):
    auth_url: str


class OAuthCallback(ApiModel):
    """Authorization code returned to the frontend by the provider's redirect."""

    code: str = Field(..., min_length=1, max_length=2000)
    state: str = Field(..., min_length=1, max_length=200)


class MondayBoard(ApiModel):
    id: str
    name: str


class MondayBoardSelect(ApiModel):
    board_id: str = Field(..., min_length=1, max_length=100)
