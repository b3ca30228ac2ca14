import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..metrics import REQUEST_COUNT, REQUEST_LATENCY

# scrapes are not application traffic
UNTRACKED_PATHS = frozenset({"/metrics"})


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        latency = time.perf_counter() - start

        # route template keeps /api/v1/features/{flag_ref} to a single series
        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or "unmatched"

        if REQUEST_LATENCY is not None:
            REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(latency)
        if REQUEST_COUNT is not None:
            REQUEST_COUNT.labels(
                method=request.method, endpoint=endpoint, http_status=str(response.status_code)
            ).inc()
        return response
