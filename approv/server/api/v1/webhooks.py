"""
Webhook API Endpoints.

This module receives Monday.com and Clerk webhooks. These requests come from
the providers rather than a browser, so they are authenticated by signature
over the raw request body instead of CSRF tokens.
"""

import json
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request

from approv.core.errors import AuthenticationError, ValidationError
from approv.core.logging_config import get_logger
from approv.server.core.config import settings
from approv.server.middleware.rate_limit import clerk_webhook_rate_limit, monday_webhook_rate_limit
from approv.server.middleware.security_headers import get_client_ip
from approv.server.services import webhooks as webhook_svc
from approv.server.services.deps import ReposDep

logger = get_logger(__name__)

router = APIRouter()

ACKNOWLEDGED = {"success": True}


def _invalid_signature() -> AuthenticationError:
    return AuthenticationError("Invalid webhook signature", code="INVALID_SIGNATURE")


def _parse_json(body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(body or b"{}")
    except ValueError as e:
        raise ValidationError("Invalid JSON payload") from e
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


@router.post(
    "/monday",
    summary="Monday.com Webhook",
    description="Answer the subscription challenge, or apply a signed board event to the linked project.",
    response_description='`{"challenge": ...}` for verification, otherwise `{"success": true}`.',
    responses={401: {"description": "Invalid webhook signature"}},
    dependencies=[Depends(monday_webhook_rate_limit)],
)
async def monday_webhook(
    request: Request,
    repos: ReposDep,
    authorization: Annotated[Optional[str], Header()] = None,
):
    body = await request.body()
    payload = _parse_json(body)

    if payload.get("challenge"):
        logger.info("Monday.com webhook verification")
        return {"challenge": payload["challenge"]}

    if not webhook_svc.verify_monday_signature(
        body, authorization, settings.monday.webhook_secret, allow_unsigned=settings.is_development
    ):
        logger.warning("Invalid Monday.com webhook signature", extra={"ip": get_client_ip(request)})
        raise _invalid_signature()

    event = payload.get("event")
    if isinstance(event, dict):
        await webhook_svc.handle_monday_event(repos, event)
    return ACKNOWLEDGED


@router.post(
    "/clerk",
    summary="Clerk Webhook",
    description="Sync user profile changes and deletions from Clerk. Signed with Svix headers.",
    response_description='`{"success": true}`.',
    responses={401: {"description": "Invalid webhook signature"}},
    dependencies=[Depends(clerk_webhook_rate_limit)],
)
async def clerk_webhook(
    request: Request,
    repos: ReposDep,
    svix_id: Annotated[Optional[str], Header()] = None,
    svix_timestamp: Annotated[Optional[str], Header()] = None,
    svix_signature: Annotated[Optional[str], Header()] = None,
):
    body = await request.body()
    if not webhook_svc.verify_svix_signature(
        body,
        svix_id,
        svix_timestamp,
        svix_signature,
        settings.clerk.webhook_secret,
        allow_unsigned=settings.is_development,
    ):
        logger.warning("Invalid Clerk webhook signature", extra={"ip": get_client_ip(request)})
        raise _invalid_signature()

    payload = _parse_json(body)
    data = payload.get("data")
    await webhook_svc.handle_clerk_event(repos, payload.get("type"), data if isinstance(data, dict) else {})
    return ACKNOWLEDGED
