"""
CSRF Token Endpoint.

This module issues the CSRF tokens the frontend must send in the
``X-CSRF-Token`` header on every state-changing request.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Response

from approv.core.database.repositories.csrf_tokens import CsrfTokenRepository
from approv.server.core.config import settings
from approv.server.middleware.csrf import CSRF_COOKIE, CSRF_TOKEN_EXPIRY_SECONDS, issue_csrf_token
from approv.server.middleware.rate_limit import csrf_rate_limit
from approv.server.schemas.common import CsrfTokenIssued
from approv.server.services.deps import SessionDep

router = APIRouter()


@router.get(
    "/csrf-token",
    response_model=CsrfTokenIssued,
    summary="Issue CSRF Token",
    description="Issue a token valid for one hour. It is also set as an httpOnly cookie.",
    response_description="The token and its lifetime in seconds.",
    dependencies=[Depends(csrf_rate_limit)],
)
async def get_csrf_token(
    response: Response,
    session: SessionDep,
    x_session_id: Annotated[Optional[str], Header()] = None,
):
    token = await issue_csrf_token(CsrfTokenRepository(session), x_session_id)
    response.set_cookie(
        CSRF_COOKIE,
        token,
        max_age=CSRF_TOKEN_EXPIRY_SECONDS,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return CsrfTokenIssued(token=token, expires_in=CSRF_TOKEN_EXPIRY_SECONDS)
