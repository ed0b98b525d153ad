"""Dependencies and error helpers shared by the API routers.

Routers import from here rather than from ``main`` so they never pull in
the application object.
"""

import logging
from typing import NoReturn

from fastapi import HTTPException, status

from richat_funding.database import get_db  # noqa: F401
from richat_funding.services.completeness import load_required_documents
from richat_funding.services.errors import NotFoundError

logger = logging.getLogger(__name__)

# Read once at import; override the dependency to change it in tests
REQUIRED_DOCUMENTS: tuple[str, ...] = load_required_documents()


def get_required_documents() -> tuple[str, ...]:
    """Document catalog every dossier is evaluated against."""
    return REQUIRED_DOCUMENTS


def _safe_error(operation: str, e: Exception) -> str:
    """Log the exception with traceback; return a message safe for clients."""
    logger.exception("Error during %s", operation)
    return f"{operation} failed. Please try again or contact support."


def raise_not_found(e: NotFoundError) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{e.entity} not found",
    ) from e


def raise_server_error(operation: str, e: Exception) -> NoReturn:
    """Translate an unexpected service failure into a generic 500."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_safe_error(operation, e),
    ) from e
