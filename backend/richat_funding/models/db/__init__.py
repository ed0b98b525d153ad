"""SQLAlchemy 2.0 ORM models for Richat Funding.

Importing this package registers every table on ``Base.metadata`` and
lets relationship strings such as ``"Document"`` resolve.
"""

from richat_funding.models.db.base import (  # noqa: F401
    Base,
    CreatedAtMixin,
    SerialIdMixin,
    TimestampMixin,
)

from richat_funding.models.db.user import User  # noqa: F401
from richat_funding.models.db.funding_opportunity import FundingOpportunity  # noqa: F401
from richat_funding.models.db.client import Client  # noqa: F401
from richat_funding.models.db.application import Application, Document  # noqa: F401

__all__ = [
    "Base",
    "CreatedAtMixin",
    "SerialIdMixin",
    "TimestampMixin",
    "User",
    "FundingOpportunity",
    "Client",
    "Application",
    "Document",
]
