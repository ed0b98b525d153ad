"""
Richat Funding API - FastAPI backend for the Mauritanian funding catalog
and consultant dossier tracker.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from richat_funding import __version__
from richat_funding.database import dispose_engine, is_database_configured
from richat_funding.routers import applications, clients, health, opportunities
from richat_funding.security import setup_security

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    if not is_database_configured():
        logger.warning("Starting without a database; only health endpoints will work")
    logger.info("Richat Funding API started (version %s)", __version__)
    yield
    await dispose_engine()
    logger.info("Richat Funding API shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title="Richat Funding API",
    description="Funding opportunity catalog and dossier tracker for Mauritania",
    version=__version__,
    lifespan=lifespan,
)

# =============================================================================
# CORS Configuration
# =============================================================================
# Production accepts HTTPS origins only; development allows the local
# dashboard dev servers.

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

if ENVIRONMENT == "production":
    default_origins = "https://richat-funding.mr"
    ALLOWED_ORIGINS = []
    for origin in os.getenv("ALLOWED_ORIGINS", default_origins).split(","):
        origin = origin.strip()
        if not origin:
            continue
        if not origin.startswith("https://"):
            logger.warning("[CORS] Rejecting non-HTTPS origin in production: %s", origin)
            continue
        if "localhost" in origin or "127.0.0.1" in origin:
            logger.warning("[CORS] Rejecting localhost origin in production: %s", origin)
            continue
        ALLOWED_ORIGINS.append(origin)

    if not ALLOWED_ORIGINS:
        ALLOWED_ORIGINS = [default_origins]
        logger.warning("[CORS] No valid origins configured, using default production origin")
else:
    default_origins = "http://localhost:3000,http://localhost:5000,http://localhost:5173"
    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", default_origins).split(",")
        if origin.strip()
    ]

if not ALLOWED_ORIGINS:
    raise ValueError("CORS configuration error: No valid allowed origins configured")

logger.info("[CORS] Environment: %s, allowed origins: %s", ENVIRONMENT, ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With"],
)

# Compress responses larger than 500 bytes
app.add_middleware(GZipMiddleware, minimum_size=500)

# =============================================================================
# Security Middleware Setup
# =============================================================================
# Must run after CORS middleware is added (order matters)
setup_security(app)

# =============================================================================
# Routers
# =============================================================================
app.include_router(health.router)
app.include_router(opportunities.router)
app.include_router(applications.router)
app.include_router(clients.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
