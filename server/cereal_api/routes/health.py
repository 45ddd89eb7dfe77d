# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness and readiness
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. "Is the process alive?" Near-zero cost.
#                    Returns 200 always.
#
#   /health/ready  → Readiness probe. "Can it serve traffic?"
#                    Runs SELECT 1 against the database.
#                    Returns 503 if the database is unreachable.
#
# Both are exempt from the rate limiter and the HTTPS gate.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cereal_api.db import Database
from cereal_api.dependencies import get_database
from cereal_api.schemas import LivenessResponse, ReadinessResponse

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
def liveness() -> LivenessResponse:
    """Liveness probe: no deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness(database: Database = Depends(get_database)) -> JSONResponse:
    """Readiness probe: 503 when the database does not answer."""
    connected = database.ping()
    response = ReadinessResponse(
        status="ready" if connected else "not_ready",
        database_connected=connected,
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=response.model_dump(),
    )
