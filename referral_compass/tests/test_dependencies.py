"""
Database Dependency Tests

Tests for get_db_session in referral_compass/core/dependencies.py against a
mocked asyncpg pool: the pooled connection is yielded and released, and a
missing or unreachable database becomes a 503 before anything is acquired.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from referral_compass.core import dependencies
from referral_compass.core.database import DatabaseNotConfiguredError
from referral_compass.core.dependencies import get_db_session


pytestmark = pytest.mark.asyncio


class TestGetDbSession:
    """Tests for the get_db_session dependency."""

    async def test_yields_pooled_connection(self, monkeypatch, mock_db_pool, mock_connection):
        monkeypatch.setattr(dependencies, 'get_db_pool', AsyncMock(return_value=mock_db_pool))

        session = get_db_session()
        connection = await session.__anext__()
        assert connection is mock_connection

        await session.aclose()
        mock_db_pool.acquire.assert_called_once()
        mock_db_pool.acquire.return_value.__aexit__.assert_awaited_once()

    async def test_not_configured_is_503(self, monkeypatch, mock_db_pool):
        monkeypatch.setattr(
            dependencies,
            'get_db_pool',
            AsyncMock(side_effect=DatabaseNotConfiguredError('DATABASE_URL is not set')),
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_db_session().__anext__()

        assert exc_info.value.status_code == 503
        assert 'DATABASE_URL' in exc_info.value.detail
        mock_db_pool.acquire.assert_not_called()

    async def test_unreachable_is_503(self, monkeypatch):
        monkeypatch.setattr(dependencies, 'get_db_pool', AsyncMock(side_effect=OSError('refused')))

        with pytest.raises(HTTPException) as exc_info:
            await get_db_session().__anext__()

        assert exc_info.value.status_code == 503
        assert 'refused' in exc_info.value.detail
