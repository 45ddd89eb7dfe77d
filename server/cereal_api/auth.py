# Bearer-token authentication: bcrypt password hashes + HS256 JWTs.
# Tokens carry the username (sub) and role; issuer, audience and expiry
# are validated on every decode.


from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import bcrypt
import jwt
import structlog

from cereal_api.config import Settings

logger = structlog.get_logger(__name__)

_ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a bearer token cannot be trusted."""


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, derived from a verified access token."""

    username: str
    role: str


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class TokenService:
    """Issues and verifies access tokens with settings-driven claims."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret_key.get_secret_value()
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._ttl_seconds = settings.access_token_expire_minutes * 60

    def issue(self, *, username: str, role: str) -> str:
        issued_at = int(time.time())
        payload: dict[str, Any] = {
            "sub": username,
            "role": role,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Principal:
        raw = (token or "").strip()
        if not raw:
            raise TokenError("Access token is empty.")
        try:
            payload = jwt.decode(
                raw,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iss", "aud"]},
            )
        except jwt.InvalidTokenError as exc:
            raise TokenError(f"Invalid access token: {exc}") from exc

        username = str(payload.get("sub") or "").strip()
        if not username:
            raise TokenError("Access token has no subject.")
        return Principal(username=username, role=str(payload.get("role") or "User"))


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    raw = (authorization or "").strip()
    if not raw:
        return None
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
