"""
Backend Services Module

Business logic for Referral Compass. Every service is a set of pure functions
except referral_source, which reads from the database.

Services:
- months: YYYY-MM parsing and month arithmetic
- office_scoring: Office metrics, scoring, quartile tiering and labels
- tier_summary: Tier counts and grouping for dashboards
- health_score: 0-100 relationship health score
- ingestion: Monthly referral CSV parsing and validation
- referral_source: Read-only fetch of the office catalog and referral history

All services are consumed by the API layer (referral_compass/api/).
"""

# =============================================================================
# Error Exports
# =============================================================================

from referral_compass.services.exceptions import (
    ScoringError,
    MalformedInput,
    InvalidReferralCount,
)

# =============================================================================
# Month Arithmetic Exports
# =============================================================================

from referral_compass.services.months import (
    parse_year_month,
    months_between,
    in_trailing_window,
    current_year_month,
)

# =============================================================================
# Scoring Engine Exports
# Aggregates monthly counts into L12 / R3 / MSLR, ranks active offices by
# weighted score and assigns quartile tiers plus At-Risk / Emerging labels
# =============================================================================

from referral_compass.services.office_scoring import (
    ScoringConfig,
    compute_office_metrics,
    compute_score,
    assign_quartile_tier,
    calculate_percentile,
    determine_conditional_labels,
)

# =============================================================================
# Summary and Health Exports
# =============================================================================

from referral_compass.services.tier_summary import (
    summarize_tiers,
    group_by_tier,
    filter_by_tier,
)

from referral_compass.services.health_score import (
    compute_health_score,
    health_for_metrics,
)

# =============================================================================
# Ingestion and Data Access Exports
# =============================================================================

from referral_compass.services.ingestion import (
    ingest_referral_csv,
    TEMPLATE_CSV,
)

from referral_compass.services.referral_source import (
    fetch_office_catalog,
    fetch_monthly_referrals,
    fetch_scoring_snapshot,
)


__all__ = [
    # Errors
    "ScoringError",
    "MalformedInput",
    "InvalidReferralCount",
    # Months
    "parse_year_month",
    "months_between",
    "in_trailing_window",
    "current_year_month",
    # Scoring
    "ScoringConfig",
    "compute_office_metrics",
    "compute_score",
    "assign_quartile_tier",
    "calculate_percentile",
    "determine_conditional_labels",
    # Summary / health
    "summarize_tiers",
    "group_by_tier",
    "filter_by_tier",
    "compute_health_score",
    "health_for_metrics",
    # Ingestion / data access
    "ingest_referral_csv",
    "TEMPLATE_CSV",
    "fetch_office_catalog",
    "fetch_monthly_referrals",
    "fetch_scoring_snapshot",
]
