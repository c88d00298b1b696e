"""
SQL Query Module for the Referral Compass backend.

Provides parameterized read queries for the office catalog and the monthly
referral counts the scoring engine consumes. Keeps SQL text out of the service
layer.

Example usage:
    from referral_compass.sql import get_office_catalog_query, OFFICE_SOURCE_TYPE

    rows = await conn.fetch(get_office_catalog_query(), OFFICE_SOURCE_TYPE)
"""

from referral_compass.sql.office_queries import (
    OFFICE_SOURCE_TYPE,
    get_office_catalog_query,
    get_monthly_referrals_query,
)


__all__ = [
    "OFFICE_SOURCE_TYPE",
    "get_office_catalog_query",
    "get_monthly_referrals_query",
]
