"""FundingOpportunity ORM model.

Maps to the ``funding_opportunities`` table.  ``deadline`` is free text: it
holds either an ISO date or a descriptive phrase such as
"Soumission continue", so it is never stored as a DATE column.
"""

from typing import Optional

from sqlalchemy import Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from richat_funding.models.db.base import Base, SerialIdMixin, TimestampMixin

__all__ = ["FundingOpportunity"]


class FundingOpportunity(SerialIdMixin, TimestampMixin, Base):
    __tablename__ = "funding_opportunities"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    funding_program: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    eligibility_criteria: Mapped[str] = mapped_column(Text, nullable=False)
    # Semicolon-delimited list
    required_documents: Mapped[str] = mapped_column(Text, nullable=False)
    external_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deadline: Mapped[str] = mapped_column(Text, nullable=False)

    # Amounts in EUR
    min_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Don, Subvention, Prêt, Mixte
    funding_type: Mapped[str] = mapped_column(Text, nullable=False)
    # Ouvert, À venir, Fermé
    status: Mapped[str] = mapped_column(Text, nullable=False)
    sectors: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)

    def __repr__(self) -> str:
        return f"<FundingOpportunity id={self.id} title={self.title!r}>"
