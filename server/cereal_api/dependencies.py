# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: create_app builds → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Iterator

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from cereal_api.auth import Principal, TokenError, TokenService, parse_bearer
from cereal_api.db import Database
from cereal_api.exceptions import UnauthenticatedError
from cereal_api.services.accounts import AccountService
from cereal_api.services.cereals import CerealService
from cereal_api.services.images import ImageResolver

logger = structlog.get_logger(__name__)


def get_database(request: Request) -> Database:
    return request.app.state.database  # type: ignore[no-any-return]


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service  # type: ignore[no-any-return]


def get_image_resolver(request: Request) -> ImageResolver:
    return request.app.state.image_resolver  # type: ignore[no-any-return]


def get_db_session(database: Database = Depends(get_database)) -> Iterator[Session]:
    """One Session per request, released on every exit path."""
    with database.session() as session:
        yield session


def get_cereal_service(
    session: Session = Depends(get_db_session),
    images: ImageResolver = Depends(get_image_resolver),
) -> CerealService:
    return CerealService(session, images)


def get_account_service(
    session: Session = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AccountService:
    return AccountService(session, tokens)


# ── Authentication ───────────────────────────────────────────────────────────


def get_principal(
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> Principal | None:
    """Caller identity from the bearer token; None for anonymous or bad tokens."""
    token = parse_bearer(authorization)
    if token is None:
        return None
    try:
        return tokens.verify(token)
    except TokenError as exc:
        logger.info("bearer_token_rejected", reason=str(exc))
        return None


def require_principal(principal: Principal | None = Depends(get_principal)) -> Principal:
    """Authentication gate for protected endpoints.

    Declared as a dependency so it resolves before the request body is
    validated: an anonymous caller gets 401 even with a malformed payload.
    """
    if principal is None:
        raise UnauthenticatedError()
    return principal
