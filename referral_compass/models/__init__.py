"""
Package initialization file for backend models.

This module exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from referral_compass.models directly.

Usage:
    from referral_compass.models import (
        OfficeTier,
        MonthlyReferral,
        OfficeMetrics,
    )
"""

# =============================================================================
# Enums - Import and re-export all enumerations from enums.py
# =============================================================================

from referral_compass.models.enums import (
    OfficeTier,
    ConditionalLabel,
    ScoringStrategy,
    HealthLevel,
    HealthTrend,
)


# =============================================================================
# Schemas - Import and re-export all Pydantic models from schemas.py
# =============================================================================

from referral_compass.models.schemas import (
    # Engine inputs
    MonthlyReferral,
    OfficeRef,
    # Engine outputs
    OfficeMetrics,
    TierSummary,
    OfficeHealth,
    # API request / response
    ScoringRequest,
    OfficeMetricsResponse,
    OfficeHealthResponse,
    # CSV import
    ValidationError,
    ImportPreview,
)


__all__ = [
    # Enums
    "OfficeTier",
    "ConditionalLabel",
    "ScoringStrategy",
    "HealthLevel",
    "HealthTrend",
    # Schemas
    "MonthlyReferral",
    "OfficeRef",
    "OfficeMetrics",
    "TierSummary",
    "OfficeHealth",
    "ScoringRequest",
    "OfficeMetricsResponse",
    "OfficeHealthResponse",
    "ValidationError",
    "ImportPreview",
]
