"""
FastAPI application entry point for the Referral Compass API.

Configures logging and CORS, registers the office scoring router, and manages the
optional database pool. Scoring a posted snapshot never needs the database, so
the service starts even when DATABASE_URL is missing or the host is down.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from referral_compass import __version__
from referral_compass.api import api_router
from referral_compass.core.config import get_settings
from referral_compass.core.database import DatabaseNotConfiguredError, close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup the database pool is opened when DATABASE_URL is set; on shutdown
    it is closed.
    """
    # Startup
    logger.info("Referral Compass API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except DatabaseNotConfiguredError:
        logger.warning("DATABASE_URL not set; GET /offices/metrics will return 503")
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    # Shutdown
    logger.info("Referral Compass API shutting down")
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Referral Compass API",
    version=__version__,
    description=(
        "Scores referring offices on their monthly patient referrals and "
        "assigns VIP / Warm / Cold / Dormant tiers."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """API name, version and docs location."""
    return {
        "name": "Referral Compass API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "referral_compass.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
