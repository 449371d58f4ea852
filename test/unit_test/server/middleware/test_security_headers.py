"""
Unit tests for security headers and request helpers.
"""

from unittest.mock import MagicMock

import pytest

from approv.server.middleware.security_headers import get_client_ip, get_user_agent, is_url_safe


def make_request(headers=None, host="192.0.2.10"):
    request = MagicMock()
    request.headers = headers or {}
    request.client = MagicMock(host=host) if host else None
    return request


class TestGetClientIp:
    def test_first_forwarded_address_wins(self):
        request = make_request({"x-forwarded-for": "198.51.100.4, 10.0.0.1"})
        assert get_client_ip(request) == "198.51.100.4"

    def test_invalid_forwarded_value_falls_back_to_peer(self):
        request = make_request({"x-forwarded-for": "not-an-ip"})
        assert get_client_ip(request) == "192.0.2.10"

    def test_ipv6(self):
        assert get_client_ip(make_request({"x-forwarded-for": "2001:db8::1"})) == "2001:db8::1"

    def test_unknown_without_peer(self):
        assert get_client_ip(make_request(host=None)) == "unknown"


def test_user_agent_defaults_to_empty():
    assert get_user_agent(make_request()) == ""
    assert get_user_agent(make_request({"user-agent": "Mozilla/5.0"})) == "Mozilla/5.0"


class TestIsUrlSafe:
    """Test outbound URL screening."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://files.example.com/drawings.pdf",
            "http://example.org/path?q=1",
            "https://8.8.8.8/file.pdf",
        ],
    )
    def test_public_urls(self, url):
        assert is_url_safe(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/file",
            "javascript:alert(1)",
            "file:///etc/passwd",
            "http://localhost:8000/",
            "http://app.localhost/",
            "http://metadata.google.internal/computeMetadata/v1/",
            "http://169.254.169.254/latest/meta-data/",
            "http://127.0.0.1/",
            "http://10.0.0.5/",
            "http://192.168.1.1/",
            "http://172.16.0.1/",
            "http://[::1]/",
            "http://0.0.0.0/",
            "https:///no-host",
        ],
    )
    def test_internal_or_unsupported_urls(self, url):
        assert is_url_safe(url) is False


class TestSecurityHeadersOnResponses:
    async def test_headers_and_request_id(self, client):
        response = await client.get("/api/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert response.headers["X-Request-ID"]

    async def test_incoming_request_id_is_echoed(self, client):
        response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
