"""
Middleware modules for the Approv server.

This package contains custom middleware and request-level dependencies for
request logging, security headers, rate limiting and CSRF protection.
"""

from .csrf import verify_csrf
from .logfire_middleware import LogfireMiddleware
from .rate_limit import GeneralRateLimitMiddleware, MovingWindowLimit, RateLimit
from .security_headers import SecurityHeadersMiddleware, get_client_ip, is_url_safe

__all__ = [
    "GeneralRateLimitMiddleware",
    "LogfireMiddleware",
    "MovingWindowLimit",
    "RateLimit",
    "SecurityHeadersMiddleware",
    "get_client_ip",
    "is_url_safe",
    "verify_csrf",
]
