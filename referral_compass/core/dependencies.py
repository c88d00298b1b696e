"""
FastAPI dependency injection module for the Referral Compass backend.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints
- DBSessionDep: Type alias for injecting database connections into endpoints

Usage Examples:
    @router.get("/offices/metrics")
    async def office_metrics(
        db: DBSessionDep,
        settings: SettingsDep
    ) -> OfficeMetricsResponse:
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

import asyncpg
from asyncpg import Connection
from fastapi import Depends, HTTPException

from referral_compass.core.config import Settings, get_settings
from referral_compass.core.database import DatabaseNotConfiguredError, get_db_pool


logger = logging.getLogger(__name__)


async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    regardless of whether the handler raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        HTTPException(503): DATABASE_URL is not set or the pool cannot be created.
    """
    try:
        pool = await get_db_pool()
    except DatabaseNotConfiguredError as e:
        logger.error(f"Database requested but not configured: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Database unavailable: {e}")
        raise HTTPException(status_code=503, detail=f"Database unavailable: {str(e)}")

    async with pool.acquire() as connection:
        yield connection


def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can use FastAPI's
    dependency override mechanism:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(db: DBSessionDep)
DBSessionDep = Annotated[Connection, Depends(get_db_session)]
