"""Application (dossier) and Document ORM models.

An application links one client to one funding opportunity and owns its
documents exclusively: deleting an application deletes its documents.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from richat_funding.models.db.base import (
    Base,
    CreatedAtMixin,
    SerialIdMixin,
    TimestampMixin,
)
from richat_funding.models.db.client import Client
from richat_funding.models.db.funding_opportunity import FundingOpportunity

__all__ = ["Application", "Document"]


class Application(SerialIdMixin, TimestampMixin, Base):
    __tablename__ = "applications"

    # References
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False
    )
    funding_opportunity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("funding_opportunities.id"), nullable=False
    )

    # Workflow
    status: Mapped[str] = mapped_column(
        Text, server_default="En attente de documents", nullable=False
    )
    submission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    assigned_consultant: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completion_score: Mapped[int] = mapped_column(
        Integer, server_default="0", nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    client: Mapped[Client] = relationship(Client)
    funding_opportunity: Mapped[FundingOpportunity] = relationship(FundingOpportunity)
    documents: Mapped[list["Document"]] = relationship(
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Document.document_type",
    )


class Document(SerialIdMixin, CreatedAtMixin, Base):
    __tablename__ = "documents"

    application_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    document_type: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    is_required: Mapped[bool] = mapped_column(
        Boolean, server_default="true", nullable=False
    )
    # Soumis, Validé, ...
    status: Mapped[str] = mapped_column(Text, server_default="Soumis", nullable=False)
    application: Mapped[Application] = relationship(back_populates="documents")
