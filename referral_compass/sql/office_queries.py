"""
Parameterized SQL queries for reading the office catalog and monthly referral counts.

Tables (owned by the hosted application, read-only here):
    - patient_sources: id, name, source_type, is_active, created_by
    - monthly_patients: source_id, year_month ('YYYY-MM'), patient_count

Queries use asyncpg positional placeholders ($1, $2, ...).
"""


OFFICE_SOURCE_TYPE: str = "Office"


def get_office_catalog_query(owner_scoped: bool = False) -> str:
    """
    Generate SQL listing active referring offices.

    Parameters:
        $1: source type ('Office')
        $2: owner user id (only when owner_scoped=True)

    Args:
        owner_scoped: Restrict to offices created by one user.

    Returns:
        str: Query returning office_id, name ordered by name.
    """
    where_conditions = [
        "is_active = true",
        "source_type = $1",
    ]

    if owner_scoped:
        where_conditions.append("created_by = $2")

    where_clause = " AND ".join(where_conditions)

    return f"""
    SELECT
        id::text AS office_id,
        name
    FROM patient_sources
    WHERE {where_clause}
    ORDER BY name, id
    """


def get_monthly_referrals_query() -> str:
    """
    Generate SQL fetching the full monthly patient history for a set of offices.

    Full history is needed because all-time totals feed the no-history check.

    Parameters:
        $1: office ids (text[])

    Returns:
        str: Query returning office_id, year_month, patient_count.
    """
    return """
    SELECT
        source_id::text AS office_id,
        year_month,
        patient_count
    FROM monthly_patients
    WHERE source_id::text = ANY($1::text[])
    ORDER BY source_id, year_month
    """


__all__ = [
    "OFFICE_SOURCE_TYPE",
    "get_office_catalog_query",
    "get_monthly_referrals_query",
]
