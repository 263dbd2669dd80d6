import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from cramitup.core.rate_limit import RateLimiter

EXEMPT_PATHS = {"/api/health"}


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, standard: RateLimiter, feedback: RateLimiter, prefix: str = "/api"):
        super().__init__(app)
        self.standard = standard
        self.feedback = feedback
        self.prefix = prefix

    def _limiter_for(self, path: str):
        if not path.startswith(self.prefix) or path in EXEMPT_PATHS:
            return None
        if path == f"{self.prefix}/feedback":
            return self.feedback
        return self.standard

    async def dispatch(self, request, call_next):
        limiter = self._limiter_for(request.url.path)
        # CORS preflights are never counted
        if limiter is None or request.method == "OPTIONS":
            return await call_next(request)

        addr = client_address(request)
        if not limiter.allow(addr):
            retry_after = limiter.retry_after(addr)
            rid = getattr(request.state, "request_id", "n/a")
            logging.warning(
                "rate_limit_exceeded request_id=%s client=%s path=%s retry_after=%d",
                rid,
                addr,
                request.url.path,
                retry_after,
            )
            return JSONResponse(
                {"error": limiter.message, "retry_after": retry_after},
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
