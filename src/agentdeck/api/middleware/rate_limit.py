"""Per-client fixed-window rate limiting for the API routes."""

from dataclasses import dataclass
from time import monotonic

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from agentdeck.api.middleware.errors import error_response
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests from this IP, please try again later"


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Allow each client IP at most ``max_requests`` API calls per window.

    Requests outside ``api_prefix`` pass through uncounted. Counters live in
    memory, so every server process keeps its own.
    """

    def __init__(
        self,
        app: ASGIApp,
        api_prefix: str = "/api",
        enabled: bool = False,
        window_seconds: float = 900.0,
        max_requests: int = 100,
    ) -> None:
        super().__init__(app)
        self.api_prefix = api_prefix
        self.enabled = enabled
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._windows: dict[str, _Window] = {}

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled or not request.url.path.startswith(self.api_prefix):
            return await call_next(request)

        client = self._client_ip(request)
        now = monotonic()
        window = self._windows.setdefault(client, _Window(started_at=now))
        if now - window.started_at >= self.window_seconds:
            window.count = 0
            window.started_at = now
        window.count += 1

        reset = max(1, int(self.window_seconds - (now - window.started_at)) + 1)
        if window.count > self.max_requests:
            logger.warning(
                "api_rate_limited",
                client=client,
                path=request.url.path,
                max_requests=self.max_requests,
                window_seconds=self.window_seconds,
            )
            response: Response = error_response(429, RATE_LIMITED_MESSAGE)
            response.headers["Retry-After"] = str(reset)
        else:
            response = await call_next(request)

        response.headers["RateLimit-Limit"] = str(self.max_requests)
        response.headers["RateLimit-Remaining"] = str(max(0, self.max_requests - window.count))
        response.headers["RateLimit-Reset"] = str(reset)
        return response
