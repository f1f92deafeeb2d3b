"""Rate limiting middleware: Redis fixed-window counter.

Only mutating requests (POST/PUT) under /api/v1 are counted:
  key "ratelimit:{client}:{route_group}:{window}" with a 60s TTL.

client is the verified token subject when a valid bearer token is sent,
otherwise the real client IP (X-Forwarded-For aware). Exceeding
RATE_LIMIT_PER_MINUTE returns 429 with a Retry-After header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError, RateLimitError
from src.pm_common.redis_client import get_redis
from src.pm_common.response import error_response
from src.pm_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger("pm.ratelimit")

_WINDOW_SECONDS = 60
_COUNTED_METHODS = frozenset({"POST", "PUT"})


def _client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"sub:{decode_token(auth[7:].strip())}"
        except InvalidCredentialsError:
            pass  # unverifiable tokens share their IP's bucket
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def _route_group(path: str) -> str:
    # /api/v1/<group>/... → <group>
    parts = [p for p in path.split("/") if p]
    return parts[2] if len(parts) > 2 else "root"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if (
            not settings.RATE_LIMIT_ENABLED
            or request.method not in _COUNTED_METHODS
            or not request.url.path.startswith("/api/v1/")
        ):
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{_client_key(request)}:{_route_group(request.url.path)}:{window}"
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)
        if count > settings.RATE_LIMIT_PER_MINUTE:
            logger.warning("Rate limit hit: %s (%d)", key, count)
            err = RateLimitError()
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(err.code, err.message).model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS)},
            )
        return await call_next(request)
