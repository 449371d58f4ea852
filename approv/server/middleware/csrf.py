"""
CSRF Protection.

Tokens are issued by ``GET /api/csrf-token``. The client echoes them back in
the ``X-CSRF-Token`` header on state-changing requests. Only the SHA-256
hash of a token is stored; tokens expire after an hour.
"""

import hashlib
import random
import re
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.database import get_session
from approv.core.database.entities.csrf_tokens import CsrfToken
from approv.core.database.repositories.csrf_tokens import CsrfTokenRepository
from approv.core.errors import AppError
from approv.core.logging_config import get_logger
from approv.core.models.domain.lifecycle import utc_now

logger = get_logger(__name__)

CSRF_HEADER = "x-csrf-token"
CSRF_COOKIE = "__csrf"
CSRF_TOKEN_EXPIRY_SECONDS = 3600
CSRF_TOKEN_BYTES = 32
CLEANUP_PROBABILITY = 0.01
PROTECTED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

_TOKEN_FORMAT = re.compile(r"^[a-f0-9]{64}$")


class CsrfError(AppError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(403, code, message)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def issue_csrf_token(repo: CsrfTokenRepository, session_id: Optional[str] = None) -> str:
    """
    Create and store a new CSRF token.

    Args:
        repo: CSRF token repository
        session_id: Optional client session identifier to associate

    Returns:
        The raw token (only its hash is stored)
    """
    token = secrets.token_hex(CSRF_TOKEN_BYTES)
    now = utc_now()
    await repo.create(
        CsrfToken(
            token=hash_token(token),
            session_id=session_id,
            expires_at=now + timedelta(seconds=CSRF_TOKEN_EXPIRY_SECONDS),
        )
    )
    if random.random() < CLEANUP_PROBABILITY:
        removed = await repo.delete_expired(now)
        logger.debug(f"Removed {removed} expired CSRF tokens")
    return token


async def validate_csrf_token(repo: CsrfTokenRepository, token: Optional[str]) -> None:
    """
    Check a submitted token against the store.

    Raises:
        CsrfError: ``CSRF_MISSING``, ``CSRF_INVALID`` or ``CSRF_EXPIRED``
    """
    if not token:
        raise CsrfError("CSRF_MISSING", "CSRF token is required")
    if not _TOKEN_FORMAT.match(token):
        raise CsrfError("CSRF_INVALID", "Invalid CSRF token format")

    stored = await repo.get_by_hash(hash_token(token))
    if stored is None:
        raise CsrfError("CSRF_INVALID", "Invalid CSRF token")
    if stored.expires_at < utc_now():
        await repo.delete(stored.id)
        raise CsrfError("CSRF_EXPIRED", "CSRF token has expired")


async def verify_csrf(request: Request, session: AsyncSession = Depends(get_session)) -> None:
    """Router dependency: validate the CSRF header on state-changing methods."""
    if request.method not in PROTECTED_METHODS:
        return
    await validate_csrf_token(CsrfTokenRepository(session), request.headers.get(CSRF_HEADER))
