"""Thin SQLAlchemy repositories: one per table, bound to a request Session."""

from cereal_api.repositories.cereals import CerealRepository
from cereal_api.repositories.users import UserRepository

__all__ = ["CerealRepository", "UserRepository"]
