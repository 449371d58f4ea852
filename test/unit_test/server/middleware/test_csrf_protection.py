"""
Unit tests for CSRF token issuing and validation.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from approv.core.database.entities.csrf_tokens import CsrfToken
from approv.core.models.domain.lifecycle import utc_now
from approv.server.middleware.csrf import (
    CsrfError,
    hash_token,
    issue_csrf_token,
    validate_csrf_token,
    verify_csrf,
)


class TestIssueCsrfToken:
    """Test token creation."""

    async def test_token_is_64_hex_chars_and_only_hash_is_stored(self, repos):
        token = await issue_csrf_token(repos.csrf_tokens, session_id="sess-1")

        assert len(token) == 64
        int(token, 16)
        assert await repos.csrf_tokens.get_by_hash(token) is None
        stored = await repos.csrf_tokens.get_by_hash(hash_token(token))
        assert stored is not None
        assert stored.session_id == "sess-1"

    async def test_token_expires_after_an_hour(self, repos):
        token = await issue_csrf_token(repos.csrf_tokens)
        stored = await repos.csrf_tokens.get_by_hash(hash_token(token))
        remaining = stored.expires_at - utc_now()
        assert timedelta(minutes=59) < remaining <= timedelta(hours=1)

    async def test_tokens_are_unique(self, repos):
        assert await issue_csrf_token(repos.csrf_tokens) != await issue_csrf_token(repos.csrf_tokens)


class TestValidateCsrfToken:
    """Test token validation outcomes."""

    async def test_valid_token_passes(self, repos):
        token = await issue_csrf_token(repos.csrf_tokens)
        await validate_csrf_token(repos.csrf_tokens, token)

    @pytest.mark.parametrize(
        "token, code",
        [
            (None, "CSRF_MISSING"),
            ("", "CSRF_MISSING"),
            ("not-a-token", "CSRF_INVALID"),
            ("A" * 64, "CSRF_INVALID"),
            ("a" * 64, "CSRF_INVALID"),
        ],
    )
    async def test_rejections(self, repos, token, code):
        with pytest.raises(CsrfError) as exc_info:
            await validate_csrf_token(repos.csrf_tokens, token)
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == code

    async def test_expired_token_is_rejected_and_removed(self, repos):
        raw = "b" * 64
        await repos.csrf_tokens.create(CsrfToken(token=hash_token(raw), expires_at=utc_now() - timedelta(seconds=1)))

        with pytest.raises(CsrfError) as exc_info:
            await validate_csrf_token(repos.csrf_tokens, raw)

        assert exc_info.value.code == "CSRF_EXPIRED"
        assert await repos.csrf_tokens.get_by_hash(hash_token(raw)) is None


class TestVerifyCsrfDependency:
    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
    async def test_safe_methods_are_not_checked(self, session, method):
        request = MagicMock()
        request.method = method
        request.headers = {}
        await verify_csrf(request, session)

    async def test_unsafe_methods_require_header(self, session):
        request = MagicMock()
        request.method = "POST"
        request.headers = {}
        with pytest.raises(CsrfError) as exc_info:
            await verify_csrf(request, session)
        assert exc_info.value.code == "CSRF_MISSING"

    async def test_unsafe_method_with_valid_header(self, session, repos):
        token = await issue_csrf_token(repos.csrf_tokens)
        request = MagicMock()
        request.method = "DELETE"
        request.headers = {"x-csrf-token": token}
        await verify_csrf(request, session)
