# Translates CerealQuery filters + sort key into SQLAlchemy WHERE / ORDER BY.
# Absent filters add nothing, so every extra filter can only narrow the result.

from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement, func
from sqlalchemy.orm import InstrumentedAttribute

from cereal_api.models import NUMERIC_FIELDS, Cereal
from cereal_api.schemas import CerealQuery

_SORT_COLUMNS: dict[str, InstrumentedAttribute[Any]] = {
    "id": Cereal.id,
    "name": Cereal.name,
    "mfr": Cereal.mfr,
    "type": Cereal.type,
    **{field: getattr(Cereal, field) for field in NUMERIC_FIELDS},
    # Column names from the seed file header
    "carbo": Cereal.carbohydrates,
    "potass": Cereal.potassium,
}


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def build_conditions(query: CerealQuery) -> list[ColumnElement[bool]]:
    """Conjunction of every supplied filter, as a list of WHERE clauses."""
    conditions: list[ColumnElement[bool]] = []

    if _present(query.name):
        needle = query.name.lower()  # type: ignore[union-attr]
        conditions.append(func.lower(Cereal.name).contains(needle, autoescape=True))

    if _present(query.mfr):
        conditions.append(func.lower(Cereal.mfr) == query.mfr.lower())  # type: ignore[union-attr]

    if _present(query.type):
        conditions.append(func.lower(Cereal.type) == query.type.lower())  # type: ignore[union-attr]

    for field in NUMERIC_FIELDS:
        column = getattr(Cereal, field)
        low = getattr(query, f"{field}_min")
        high = getattr(query, f"{field}_max")
        if low is not None:
            conditions.append(column >= low)
        if high is not None:
            conditions.append(column <= high)

    return conditions


def build_ordering(sort_by: str | None, descending: bool = False) -> list[ColumnElement[Any]]:
    """ORDER BY for a sort key. Unknown or missing keys fall back to id ascending."""
    key = (sort_by or "").strip().lower()
    column = _SORT_COLUMNS.get(key)
    if column is None:
        return [Cereal.id.asc()]
    primary = column.desc() if descending else column.asc()
    if column is Cereal.id:
        return [primary]
    return [primary, Cereal.id.asc()]


def is_known_sort_key(sort_by: str | None) -> bool:
    return (sort_by or "").strip().lower() in _SORT_COLUMNS
