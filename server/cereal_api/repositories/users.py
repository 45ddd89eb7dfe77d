"""Persistence helpers for the users table."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from cereal_api.models import User


class UserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_username(self, username: str) -> User | None:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user
