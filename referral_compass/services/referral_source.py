"""
Read-only access to the office catalog and monthly referral counts.

Fetches the current snapshot from the hosted database so it can be scored. There
is no caching and no write path: every call reads fresh rows, and consistency is
simply "refetch and recompute".
"""

import logging
from typing import List, Optional, Tuple

from asyncpg import Connection

from referral_compass.models import MonthlyReferral, OfficeRef
from referral_compass.sql import (
    OFFICE_SOURCE_TYPE,
    get_monthly_referrals_query,
    get_office_catalog_query,
)


logger = logging.getLogger(__name__)


async def fetch_office_catalog(
    conn: Connection,
    owner_id: Optional[str] = None
) -> List[OfficeRef]:
    """
    Fetch active referring offices.

    Args:
        conn: Database connection
        owner_id: Restrict to offices created by this user

    Returns:
        OfficeRef entries ordered by name
    """
    if owner_id is not None:
        rows = await conn.fetch(get_office_catalog_query(owner_scoped=True), OFFICE_SOURCE_TYPE, owner_id)
    else:
        rows = await conn.fetch(get_office_catalog_query(), OFFICE_SOURCE_TYPE)

    return [OfficeRef(officeId=row["office_id"], name=row["name"]) for row in rows]


async def fetch_monthly_referrals(
    conn: Connection,
    office_ids: List[str]
) -> List[MonthlyReferral]:
    """
    Fetch the full monthly referral history for the given offices.

    Rows are passed through unchanged; validation is the scoring engine's job.
    """
    if not office_ids:
        return []

    rows = await conn.fetch(get_monthly_referrals_query(), office_ids)

    return [
        MonthlyReferral(
            officeId=row["office_id"],
            yearMonth=row["year_month"],
            patientCount=row["patient_count"],
        )
        for row in rows
    ]


async def fetch_scoring_snapshot(
    conn: Connection,
    owner_id: Optional[str] = None
) -> Tuple[List[OfficeRef], List[MonthlyReferral]]:
    """
    Fetch the catalog and its referral history in one call.

    Returns:
        Tuple of (offices, referrals)
    """
    offices = await fetch_office_catalog(conn, owner_id=owner_id)
    referrals = await fetch_monthly_referrals(conn, [office.officeId for office in offices])

    logger.info(f"Fetched {len(offices)} offices with {len(referrals)} monthly referral rows")

    return offices, referrals


__all__ = [
    "fetch_office_catalog",
    "fetch_monthly_referrals",
    "fetch_scoring_snapshot",
]
