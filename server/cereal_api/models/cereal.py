# ─────────────────────────────────────────────────────────────────────────────
# Cereal — nutrition facts for one breakfast cereal
# ─────────────────────────────────────────────────────────────────────────────

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cereal_api.db import Base

# Numeric attributes that get a <Field>Min / <Field>Max filter pair.
NUMERIC_FIELDS: tuple[str, ...] = (
    "calories",
    "protein",
    "fat",
    "sodium",
    "fiber",
    "carbohydrates",
    "sugars",
    "potassium",
    "vitamins",
    "shelf",
    "weight",
    "cups",
    "rating",
)

# Everything a create/update request may overwrite (id is server-owned).
MUTABLE_FIELDS: tuple[str, ...] = ("name", "mfr", "type", *NUMERIC_FIELDS, "image_path")


class Cereal(Base):
    __tablename__ = "cereals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    mfr: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="")  # H(ot) / C(old)

    calories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    protein: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sodium: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fiber: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    carbohydrates: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sugars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    potassium: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vitamins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shelf: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    cups: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Relative to the configured content root, e.g. "data/images/Corn Flakes.jpg".
    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)

    def __repr__(self) -> str:
        return f"Cereal(id={self.id!r}, name={self.name!r})"
