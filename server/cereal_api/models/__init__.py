"""ORM models: every table registered on db.Base."""

from cereal_api.models.cereal import MUTABLE_FIELDS, NUMERIC_FIELDS, Cereal
from cereal_api.models.user import User

__all__ = [
    "MUTABLE_FIELDS",
    "NUMERIC_FIELDS",
    "Cereal",
    "User",
]
