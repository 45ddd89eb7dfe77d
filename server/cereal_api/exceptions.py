# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class CerealApiError(Exception):
    """Base exception for all errors surfaced to API callers."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.headers = headers
        super().__init__(message)


class NotFoundError(CerealApiError):
    """Raised when a requested record (or image) does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class BadRequestError(CerealApiError):
    """Raised for payloads that are well-formed but not acceptable."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnauthenticatedError(CerealApiError):
    """Raised when a protected operation is called without a valid bearer token."""

    def __init__(self, message: str = "Authentication required."):
        super().__init__(
            message,
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )


class CerealNotFoundError(NotFoundError):
    def __init__(self, cereal_id: int):
        self.cereal_id = cereal_id
        super().__init__(f"Cereal with ID {cereal_id} not found.")


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Services raise CerealApiError subclasses; these handlers turn them into
    structured JSON. Anything else becomes a bare 500 so internal detail
    never reaches the caller.
    """

    @app.exception_handler(CerealApiError)
    async def cereal_api_error_handler(request: Request, exc: CerealApiError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "api_error",
            error=exc.message,
            error_type=type(exc).__name__,
            status=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "type": type(exc).__name__},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        logger.warning("request_validation_failed", path=request.url.path, details=details)
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request payload.", "details": details},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), path=request.url.path, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "UnhandledError"},
        )
