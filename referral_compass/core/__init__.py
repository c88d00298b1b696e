"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- FastAPI dependency injection utilities

This module re-exports key components from submodules so other modules can write:

    from referral_compass.core import get_settings, get_db_pool, DBSessionDep
"""

# =============================================================================
# Re-exports from referral_compass.core.config
# =============================================================================
from referral_compass.core.config import Settings, get_settings

# =============================================================================
# Re-exports from referral_compass.core.database
# =============================================================================
from referral_compass.core.database import (
    DatabaseNotConfiguredError,
    init_db,
    close_db,
    get_db_pool,
)

# =============================================================================
# Re-exports from referral_compass.core.dependencies
# =============================================================================
from referral_compass.core.dependencies import (
    get_db_session,
    get_settings_dependency,
    SettingsDep,
    DBSessionDep,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'DatabaseNotConfiguredError',
    'init_db',
    'close_db',
    'get_db_pool',
    # FastAPI dependency injection (from dependencies.py)
    'get_db_session',
    'get_settings_dependency',
    'SettingsDep',
    'DBSessionDep',
]
