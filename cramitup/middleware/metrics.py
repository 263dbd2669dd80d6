import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from cramitup.middleware.rate_limit import client_address


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        addr = client_address(request)
        start = time.perf_counter()
        rid = getattr(request.state, "request_id", "n/a")
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            logging.exception("[METRICS] request_id=%s client=%s path=%s error", rid, addr, request.url.path)
            raise
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            logging.info(
                "[METRICS] request_id=%s client=%s method=%s path=%s status=%d latency_ms=%.2f",
                rid,
                addr,
                request.method,
                request.url.path,
                status,
                elapsed,
            )
