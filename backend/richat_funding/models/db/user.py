"""User ORM model (``users`` table).

Present for schema parity; no endpoint authenticates against it.
"""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from richat_funding.models.db.base import Base, SerialIdMixin

__all__ = ["User"]


class User(SerialIdMixin, Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
