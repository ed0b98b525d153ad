"""Health-check router."""

import logging

from fastapi import APIRouter

from richat_funding import __version__
from richat_funding.database import is_database_configured

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check"""
    return {"status": "ok", "message": "Richat Funding API is running"}


@router.get("/api/health")
async def health_check():
    """Liveness plus whether a database is configured."""
    database = is_database_configured()
    return {
        "status": "ok" if database else "degraded",
        "version": __version__,
        "databaseConfigured": database,
    }
