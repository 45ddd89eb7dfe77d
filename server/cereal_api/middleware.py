# ─────────────────────────────────────────────────────────────────────────────
# Request Middleware — request ID, timing, structured logging, HTTPS gate
# ─────────────────────────────────────────────────────────────────────────────


import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds request ID, logs timing, binds the ID into structlog contextvars.

    Skips logging for /health (probe noise).
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()

        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = (time.perf_counter() - start) * 1000

        if not request.url.path.startswith("/health"):
            logger.info(
                "request_completed",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path),
                status=response.status_code,
                duration_ms=round(duration_ms, 1),
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(round(duration_ms, 1))
        return response


class HTTPSRequiredMiddleware(BaseHTTPMiddleware):
    """Reject plain-HTTP API calls with 403.

    Honours X-Forwarded-Proto so TLS can terminate at a proxy. Health probes
    are exempt because load balancers usually probe over HTTP.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.startswith("/health"):
            return await call_next(request)

        forwarded = request.headers.get("x-forwarded-proto", "")
        scheme = forwarded.split(",")[0].strip().lower() or request.url.scheme
        if scheme != "https":
            logger.warning("https_required", path=request.url.path, scheme=scheme)
            return JSONResponse(
                status_code=403,
                content={"error": "HTTPS is required."},
            )
        return await call_next(request)
