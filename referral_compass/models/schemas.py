"""
Pydantic request/response models for the Referral Compass backend.

This module provides type-safe data validation and serialization for the scoring
engine inputs and outputs, tier summaries, office health, and CSV import previews.

Field names are camelCase so payloads match what the dashboard already consumes.
All models use Pydantic v2 syntax.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from referral_compass.models.enums import (
    ConditionalLabel,
    HealthLevel,
    HealthTrend,
    OfficeTier,
    ScoringStrategy,
)


# =============================================================================
# Engine Inputs
# =============================================================================


class MonthlyReferral(BaseModel):
    """
    One fact: referrals received from an office in a calendar month.

    Month format and count sign are checked by the scoring engine, which raises
    MalformedInput / InvalidReferralCount rather than coercing. Strings are not
    stripped and patientCount is strict: "5" and 4.0 are rejected, not converted.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "officeId": "3f1c9a52-office",
                "yearMonth": "2024-05",
                "patientCount": 10,
            }
        }
    )

    officeId: str = Field(
        ...,
        description="Referring office identifier",
        min_length=1
    )
    yearMonth: str = Field(
        ...,
        description="Calendar month in YYYY-MM format"
    )
    patientCount: int = Field(
        ...,
        strict=True,
        description="Patients referred by the office in that month"
    )


class OfficeRef(BaseModel):
    """Catalog entry for an office that must appear in the scoring output."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    officeId: str = Field(..., min_length=1, description="Office identifier")
    name: Optional[str] = Field(default=None, description="Display name")


# =============================================================================
# Engine Outputs
# =============================================================================


class OfficeMetrics(BaseModel):
    """
    Derived per-office metrics, recomputed on every scoring run.

    score, rank, percentile and conditionalLabel are only set for active
    offices (history and MSLR below the dormancy cutoff).
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "officeId": "3f1c9a52-office",
                "name": "Lakeside Family Dental",
                "totalReferrals": 48,
                "currentMonthReferrals": 3,
                "l12": 30,
                "r3": 9,
                "mslr": 0,
                "lastActiveMonth": "2024-06",
                "score": 21.6,
                "rank": 0,
                "tier": "VIP",
                "percentile": 100,
                "conditionalLabel": None,
            }
        }
    )

    officeId: str = Field(..., description="Office identifier")
    name: Optional[str] = Field(default=None, description="Display name from the catalog")
    totalReferrals: int = Field(..., ge=0, description="All-time referral total")
    currentMonthReferrals: int = Field(
        default=0,
        ge=0,
        description="Referrals recorded for the reference month"
    )
    l12: int = Field(..., ge=0, description="Referrals in the trailing 12 calendar months")
    r3: int = Field(..., ge=0, description="Referrals in the trailing 3 calendar months")
    mslr: int = Field(
        ...,
        ge=0,
        description="Months since last referral (sentinel when never referred)"
    )
    lastActiveMonth: Optional[str] = Field(
        default=None,
        description="Most recent month with a nonzero count"
    )
    score: Optional[float] = Field(default=None, description="Ranking score (active offices)")
    rank: Optional[int] = Field(default=None, ge=0, description="0-based rank among active offices")
    tier: OfficeTier = Field(..., description="Assigned relationship tier")
    percentile: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Rank percentile among active offices"
    )
    conditionalLabel: Optional[ConditionalLabel] = Field(
        default=None,
        description="At-Risk / Emerging flag (active offices)"
    )


class TierSummary(BaseModel):
    """Headline counts shown above the office list."""
    total: int = Field(default=0, ge=0, description="Number of offices")
    vip: int = Field(default=0, ge=0, description="Offices tiered VIP")
    warm: int = Field(default=0, ge=0, description="Offices tiered Warm")
    cold: int = Field(default=0, ge=0, description="Offices tiered Cold")
    dormant: int = Field(default=0, ge=0, description="Offices tiered Dormant")
    atRisk: int = Field(default=0, ge=0, description="Offices flagged At-Risk")
    emerging: int = Field(default=0, ge=0, description="Offices flagged Emerging")
    l12Total: int = Field(default=0, ge=0, description="Sum of L12 over all offices")
    currentMonthTotal: int = Field(
        default=0,
        ge=0,
        description="Sum of current-month referrals over all offices"
    )


class OfficeHealth(BaseModel):
    """0-100 partnership health score with its banding and momentum trend."""
    officeId: Optional[str] = Field(default=None, description="Office identifier")
    score: int = Field(..., ge=0, le=100, description="Health score")
    trend: HealthTrend = Field(..., description="Recent momentum direction")
    level: HealthLevel = Field(..., description="Score banding")


# =============================================================================
# API Request / Response Models
# =============================================================================


class ScoringRequest(BaseModel):
    """Snapshot of referral history posted for scoring."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "now": "2024-06",
                "offices": [{"officeId": "a"}, {"officeId": "b"}],
                "referrals": [
                    {"officeId": "a", "yearMonth": "2024-05", "patientCount": 10}
                ],
            }
        }
    )

    now: str = Field(..., description="Reference month in YYYY-MM format")
    offices: List[OfficeRef] = Field(..., description="Office catalog")
    referrals: List[MonthlyReferral] = Field(
        default_factory=list,
        description="Known monthly referral counts"
    )
    strategy: Optional[ScoringStrategy] = Field(
        default=None,
        description="Ranking strategy override (defaults to configuration)"
    )


class OfficeMetricsResponse(BaseModel):
    """Scored offices plus the tier summary for the same run."""
    now: str = Field(..., description="Reference month used for all windows")
    strategy: ScoringStrategy = Field(..., description="Ranking strategy applied")
    offices: List[OfficeMetrics] = Field(default_factory=list)
    summary: TierSummary = Field(default_factory=TierSummary)


class OfficeHealthResponse(BaseModel):
    """Health scores for every office in a scoring run."""
    now: str = Field(..., description="Reference month used for all windows")
    offices: List[OfficeHealth] = Field(default_factory=list)


# =============================================================================
# CSV Import Models
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting data problems found while parsing an import sheet.
    """
    field: str = Field(..., description="Column or cell with the problem")
    message: str = Field(..., description="Error message")
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based data row where the error occurred"
    )


class ImportPreview(BaseModel):
    """Parsed contents of a monthly referral import sheet."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "year": 2024,
                "sources": ["Dr. Smith's Dental"],
                "referrals": [
                    {"officeId": "Dr. Smith's Dental", "yearMonth": "2024-01", "patientCount": 10}
                ],
                "rows_processed": 1,
                "errors": [],
            }
        }
    )

    success: bool = Field(..., description="Whether the sheet parsed without errors")
    year: int = Field(..., ge=1900, le=9999, description="Year the month columns belong to")
    sources: List[str] = Field(default_factory=list, description="Source names with data")
    referrals: List[MonthlyReferral] = Field(
        default_factory=list,
        description="Nonzero monthly counts keyed by source name"
    )
    rows_processed: int = Field(default=0, ge=0, description="Data rows read from the sheet")
    errors: List[ValidationError] = Field(default_factory=list)
