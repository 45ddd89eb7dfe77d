# Registration + login. Every registered account is an admin; roles are
# carried in the token for future use but not enforced.

from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cereal_api.auth import TokenService, hash_password, verify_password
from cereal_api.exceptions import BadRequestError, UnauthenticatedError
from cereal_api.models import User
from cereal_api.repositories import UserRepository
from cereal_api.schemas import LoginRequest, RegisterRequest

logger = structlog.get_logger(__name__)

DEFAULT_ROLE = "Admin"


class AccountService:
    def __init__(self, session: Session, tokens: TokenService) -> None:
        self._session = session
        self._users = UserRepository(session)
        self._tokens = tokens

    def register(self, request: RegisterRequest) -> User:
        if self._users.exists(request.username):
            logger.info("register_rejected", username=request.username, reason="taken")
            raise BadRequestError("Username already taken.")

        try:
            user = self._users.add(
                User(
                    username=request.username,
                    password_hash=hash_password(request.password),
                    role=DEFAULT_ROLE,
                )
            )
            self._session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same name
            self._session.rollback()
            raise BadRequestError("Username already taken.") from exc
        logger.info("user_registered", user_id=user.id, username=user.username)
        return user

    def login(self, request: LoginRequest) -> str:
        user = self._users.get_by_username(request.username)
        if user is None or not verify_password(request.password, user.password_hash):
            logger.info("login_rejected", username=request.username)
            raise UnauthenticatedError("Invalid username or password.")

        logger.info("login_succeeded", user_id=user.id)
        return self._tokens.issue(username=user.username, role=user.role)
