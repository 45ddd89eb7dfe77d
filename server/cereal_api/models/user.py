from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cereal_api.db import Base


class User(Base):
    """API account. Only used to issue bearer tokens."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="User")
