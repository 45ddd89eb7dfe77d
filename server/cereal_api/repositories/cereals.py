"""Persistence helpers for the cereals table."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.orm import Session

from cereal_api.models import Cereal


class CerealRepository:
    """CRUD over Cereal rows. Callers own the transaction (commit/rollback)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, cereal_id: int) -> Cereal | None:
        return self.session.get(Cereal, cereal_id)

    def get_by_name(self, name: str) -> Cereal | None:
        """Exact, case-sensitive name lookup."""
        stmt = select(Cereal).where(Cereal.name == name).order_by(Cereal.id).limit(1)
        return self.session.scalars(stmt).first()

    def search(
        self,
        conditions: Sequence[ColumnElement[bool]] = (),
        ordering: Sequence[ColumnElement[Any]] = (),
    ) -> list[Cereal]:
        stmt = select(Cereal).where(*conditions).order_by(*ordering)
        return list(self.session.scalars(stmt))

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(Cereal)) or 0

    def add(self, cereal: Cereal) -> Cereal:
        self.session.add(cereal)
        self.session.flush()  # assigns cereal.id
        return cereal

    def remove(self, cereal: Cereal) -> None:
        self.session.delete(cereal)

    def remove_all(self) -> int:
        result = self.session.execute(delete(Cereal))
        return result.rowcount or 0
