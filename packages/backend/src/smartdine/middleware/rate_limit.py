"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "smartdine:rl:{ip}:{bucket}:{minute}".
AI endpoints get a stricter bucket (10/min by default) because every
request costs a paid upstream completion call.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

AI_PATH_PREFIX = "/api/v1/ai/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, ai_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.ai_rpm = ai_rpm

    def bucket_for(self, path: str) -> tuple[str, int]:
        """Return (bucket name, requests per minute) for a request path."""
        if path.startswith(AI_PATH_PREFIX):
            return "ai", self.ai_rpm
        return "api", self.default_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            from smartdine.db.redis import get_redis

            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket, rpm = self.bucket_for(request.url.path)
        window = int(time.time() // 60)
        key = f"smartdine:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception:
            # Redis hiccup: let the request through unthrottled
            return await call_next(request)

        if count > rpm:
            message = (
                "Too many AI requests, please try again later"
                if bucket == "ai"
                else "Rate limit exceeded. Try again later."
            )
            return JSONResponse(
                status_code=429,
                content={"detail": message},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
