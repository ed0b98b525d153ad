"""Client ORM model.

A client is an organization a consultant prepares funding dossiers for.
Clients are created and updated independently of their applications.
"""

from typing import Optional

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from richat_funding.models.db.base import Base, SerialIdMixin, TimestampMixin

__all__ = ["Client"]


class Client(SerialIdMixin, TimestampMixin, Base):
    __tablename__ = "clients"

    organization_name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_person: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    legal_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # État, Institution publique, Privé
    structure_type: Mapped[str] = mapped_column(
        Text, server_default="Privé", nullable=False
    )
