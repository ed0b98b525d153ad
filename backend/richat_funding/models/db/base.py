"""Column mixins shared by the ORM models.

Every table uses a serial integer key.  Documents only record when they
were created; the other editable records also track ``updated_at``, which
services set explicitly on partial updates as well.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from richat_funding.database import Base

__all__ = ["Base", "CreatedAtMixin", "SerialIdMixin", "TimestampMixin"]


class SerialIdMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
