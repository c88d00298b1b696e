"""
Pytest Configuration and Shared Fixtures for Referral Compass Backend Tests.

This module provides fixtures and configuration for all backend tests:
- Mock asyncpg pool and connection fixtures so data access runs without a database
- Settings cache reset so environment overrides never leak between tests
- A fixed reference month and sample office catalog / referral history
- Helper functions for building referral rows and CSV uploads

Dependency References:
- referral_compass/core/config.py: get_settings (lru_cache singleton)
- referral_compass/core/dependencies.py: get_db_session (overridden in API tests)
"""

from typing import Any, Dict, Generator, List, Optional
from unittest.mock import AsyncMock, Mock

import pandas as pd
import pytest

from referral_compass.core.config import get_settings
from referral_compass.models import MonthlyReferral, OfficeRef
from referral_compass.services.office_scoring import ScoringConfig


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom pytest markers.

    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks tests exercising several layers together
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests exercising the API and engine together'
    )


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """
    Clear the get_settings() cache around every test.

    Tests that set environment variables with monkeypatch see fresh settings,
    and nothing they set survives into the next test.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def scoring_config() -> ScoringConfig:
    """Default scoring parameters (12/3 month windows, 6 month dormancy, 0.6/0.4)."""
    return ScoringConfig()


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_connection() -> AsyncMock:
    """
    Mock asyncpg connection with fetch/fetchrow/fetchval returning nothing.

    Usage:
        async def test_fetch(mock_connection):
            mock_connection.fetch.return_value = [{'office_id': 'a', 'name': 'A'}]
    """
    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)
    return conn


@pytest.fixture
def mock_db_pool(mock_connection: AsyncMock) -> AsyncMock:
    """
    Mock asyncpg pool whose acquire() context manager yields mock_connection.
    """
    pool = AsyncMock()

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=mock_connection)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)

    return pool


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

@pytest.fixture
def reference_month() -> str:
    """Reference month used across scoring tests."""
    return '2024-06'


@pytest.fixture
def sample_catalog() -> List[OfficeRef]:
    """
    Five offices covering every partition:
    - lakeside: steady referrer, VIP
    - harbor: smaller steady referrer
    - summit: big year but nothing in the last 3 months
    - pine: dormant (last referral 2023-09)
    - brand-new: no history at all
    """
    return [
        OfficeRef(officeId='lakeside', name='Lakeside Family Dental'),
        OfficeRef(officeId='harbor', name='Harbor Pediatrics'),
        OfficeRef(officeId='summit', name='Summit Orthodontics'),
        OfficeRef(officeId='pine', name='Pine Street Clinic'),
        OfficeRef(officeId='brand-new', name='Brand New Office'),
    ]


@pytest.fixture
def sample_referrals() -> List[MonthlyReferral]:
    """Referral history matching sample_catalog, relative to 2024-06."""
    rows = []
    for month in ['2023-08', '2023-10', '2023-12', '2024-02', '2024-04', '2024-05', '2024-06']:
        rows.append(referral('lakeside', month, 5))
    for month in ['2024-04', '2024-06']:
        rows.append(referral('harbor', month, 2))
    rows.append(referral('summit', '2024-01', 20))
    rows.append(referral('summit', '2024-03', 10))
    rows.append(referral('pine', '2023-09', 40))
    return rows


@pytest.fixture
def sample_csv_df() -> pd.DataFrame:
    """Two-office import sheet in the layout of TEMPLATE_CSV."""
    return pd.DataFrame({
        'Source': ["Dr. Smith's Dental", 'City Medical Center'],
        'Jan': [10, 0],
        'Feb': [12, 8],
        'March': [0, 6],
        'Total': [22, 14],
    })


# ============================================================
# HELPER FUNCTIONS (Exported)
# ============================================================

def referral(office_id: str, year_month: str, patient_count: int) -> MonthlyReferral:
    """Shorthand for one MonthlyReferral row."""
    return MonthlyReferral(officeId=office_id, yearMonth=year_month, patientCount=patient_count)


def by_office(results: List[Any]) -> Dict[str, Any]:
    """Index engine output by officeId."""
    return {result.officeId: result for result in results}


def create_csv_bytes(df: pd.DataFrame) -> bytes:
    """
    Convert DataFrame to UTF-8 CSV bytes for upload testing.

    The output excludes the DataFrame index to match the expected upload format.
    """
    return df.to_csv(index=False).encode('utf-8')


def scoring_payload(
    now: str,
    offices: List[str],
    referrals: List[Dict[str, Any]],
    strategy: Optional[str] = None
) -> Dict[str, Any]:
    """JSON body for the POST scoring endpoints."""
    payload: Dict[str, Any] = {
        'now': now,
        'offices': [{'officeId': office_id} for office_id in offices],
        'referrals': referrals,
    }
    if strategy is not None:
        payload['strategy'] = strategy
    return payload


__all__ = [
    'referral',
    'by_office',
    'create_csv_bytes',
    'scoring_payload',
]
