"""
Rate Limiting.

Moving-window limits from the ``limits`` package, kept in process memory, plus
the FastAPI pieces built on them:

- :class:`GeneralRateLimitMiddleware` caps every client IP across the API.
- :class:`RateLimit` is a route dependency for tighter per-endpoint limits.

Counts are per process. Several instances behind a load balancer each apply
the limits independently.
"""

import math
import time
from typing import Callable, Optional

from fastapi import Request
from limits import RateLimitItem, RateLimitItemPerSecond, parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from approv.core.errors import RateLimitError
from approv.core.logging_config import get_logger
from approv.server.exception_handlers.responses import error_response

from .security_headers import get_client_ip

logger = get_logger(__name__)


class MovingWindowLimit:
    """
    Allow at most ``max_requests`` hits per key within ``window_seconds``.

    A limit can also be given as a rate string such as ``"20/minute"``.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: float = 60,
        rate: Optional[str] = None,
        storage: Optional[MemoryStorage] = None,
    ) -> None:
        if rate is not None:
            self.item: RateLimitItem = parse(rate)
        elif max_requests is not None:
            self.item = RateLimitItemPerSecond(max_requests, int(window_seconds))
        else:
            raise ValueError("Either max_requests or rate is required")
        self.storage = storage or MemoryStorage()
        self.strategy = MovingWindowRateLimiter(self.storage)

    @property
    def max_requests(self) -> int:
        return self.item.amount

    @property
    def window_seconds(self) -> int:
        return self.item.get_expiry()

    def hit(self, key: str) -> Optional[int]:
        """
        Record a hit for ``key``.

        Args:
            key: Bucket identifier, e.g. ``"{ip}:{path}"``

        Returns:
            None when allowed, otherwise the number of seconds to wait
        """
        if self.strategy.hit(self.item, key):
            return None
        return self.retry_after(key)

    def retry_after(self, key: str) -> int:
        reset_time, _ = self.strategy.get_window_stats(self.item, key)
        return max(1, math.ceil(reset_time - time.time()))

    def remaining(self, key: str) -> int:
        return self.strategy.get_window_stats(self.item, key).remaining

    def reset(self) -> None:
        self.storage.reset()


def _ip_path_key(request: Request) -> str:
    return f"{get_client_ip(request)}:{request.url.path}"


class RateLimit:
    """
    Route dependency enforcing a moving-window limit.

    Usage::

        router = APIRouter(dependencies=[Depends(RateLimit(20, 60))])
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60,
        key_func: Callable[[Request], str] = _ip_path_key,
        message: str = "Rate limit exceeded",
        code: str = "RATE_LIMIT_EXCEEDED",
    ) -> None:
        self.limiter = MovingWindowLimit(max_requests, window_seconds)
        self.key_func = key_func
        self.message = message
        self.code = code

    async def __call__(self, request: Request) -> None:
        key = self.key_func(request)
        retry_after = self.limiter.hit(key)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {key}", extra={"key": key, "retry_after": retry_after})
            raise RateLimitError(retry_after=retry_after, message=self.message, code=self.code)


def approval_token_key(request: Request) -> str:
    token = request.path_params.get("token", "")
    return f"approval:{token}:{get_client_ip(request)}"


class GeneralRateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP cap across the whole API. Health checks are exempt."""

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window_seconds: float = 60,
        exempt_prefixes: tuple[str, ...] = ("/api/health",),
    ) -> None:
        super().__init__(app)
        self.limiter = MovingWindowLimit(max_requests, window_seconds)
        self.exempt_prefixes = exempt_prefixes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS" or request.url.path.startswith(self.exempt_prefixes):
            return await call_next(request)

        ip = get_client_ip(request)
        retry_after = self.limiter.hit(ip)
        if retry_after is not None:
            logger.warning(f"General rate limit exceeded for {ip}", extra={"ip": ip, "path": request.url.path})
            return error_response(
                request,
                429,
                "RATE_LIMIT_EXCEEDED",
                "Too many requests. Please try again later.",
                {"retryAfter": retry_after},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)


# Endpoint limits
approval_rate_limit = RateLimit(20, 60, key_func=approval_token_key, code="APPROVAL_RATE_LIMIT")
csrf_rate_limit = RateLimit(10, 60)
email_rate_limit = RateLimit(20, 60)
reminder_rate_limit = RateLimit(10, 60)
slack_rate_limit = RateLimit(30, 60)
monday_webhook_rate_limit = RateLimit(100, 60)
clerk_webhook_rate_limit = RateLimit(50, 60)

ENDPOINT_LIMITS = (
    approval_rate_limit,
    csrf_rate_limit,
    email_rate_limit,
    reminder_rate_limit,
    slack_rate_limit,
    monday_webhook_rate_limit,
    clerk_webhook_rate_limit,
)


def reset_endpoint_limits() -> None:
    for limit in ENDPOINT_LIMITS:
        limit.limiter.reset()
