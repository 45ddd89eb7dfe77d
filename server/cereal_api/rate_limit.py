# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter — slowapi, global fixed window per client IP
# ─────────────────────────────────────────────────────────────────────────────
# Built per application from Settings. The limit is enforced by a router-level
# dependency (see main.create_app), so every /api route draws from one budget
# per client address and routers left without it (health) are never counted.
# Storage is in-process memory, so each app instance counts on its own.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Callable

import structlog
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from cereal_api.config import Settings

logger = structlog.get_logger(__name__)


def build_limiter(settings: Settings) -> Limiter:
    """Limiter keyed by remote address.

    key_style="endpoint" scopes counters by the decorated function rather than
    the URL, which is what makes the budget global across routes.
    """
    return Limiter(
        key_func=get_remote_address,
        strategy="fixed-window",
        key_style="endpoint",
        enabled=settings.rate_limit_enabled,
    )


def build_rate_limit_dependency(limiter: Limiter, rate_limit: str) -> Callable[[Request], None]:
    """Router dependency that spends one unit of the caller's budget.

    Raises RateLimitExceeded (handled below) once the window is used up.
    Call once per limiter: slowapi registers the limit under the function name.
    """

    @limiter.limit(rate_limit)
    def enforce_rate_limit(request: Request) -> None:
        return None

    return enforce_rate_limit


def retry_after_seconds(rate_limit: str) -> str:
    """Window length of a limit string, e.g. "100/15 minutes" → "900"."""
    try:
        return str(parse(rate_limit).get_expiry())
    except ValueError:
        return "60"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 JSON consistent with CerealApiError responses."""
    settings: Settings = request.app.state.settings
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        client=get_remote_address(request),
        detail=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"error": f"Rate limit exceeded: {exc.detail}"},
        headers={"Retry-After": retry_after_seconds(settings.rate_limit)},
    )
