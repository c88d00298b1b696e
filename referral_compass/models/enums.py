"""
Enumeration definitions for the Referral Compass backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization compatibility
with Pydantic models, enabling automatic serialization/deserialization in API responses.
"""

from enum import Enum


class OfficeTier(str, Enum):
    """
    Relationship tier assigned to every referring office.

    - VIP: Top quartile of active offices by score
    - Warm: Second quartile of active offices
    - Cold: Bottom half of active offices, or offices that never referred
    - Dormant: Referred in the past but not within the dormancy cutoff
    """
    VIP = "VIP"
    WARM = "Warm"
    COLD = "Cold"
    DORMANT = "Dormant"


class ConditionalLabel(str, Enum):
    """
    Secondary qualitative flag for active offices, independent of tier.

    - At-Risk: Strong trailing-year volume but nothing in the last three months
    - Emerging: Weak trailing-year volume with a disproportionate recent uptick
    """
    AT_RISK = "At-Risk"
    EMERGING = "Emerging"


class ScoringStrategy(str, Enum):
    """
    How active offices are ranked before quartile tiering.

    - weighted: l12_weight * L12 + r3_weight * R3
    - total_referrals: all-time referral total
    """
    WEIGHTED = "weighted"
    TOTAL_REFERRALS = "total_referrals"


class HealthLevel(str, Enum):
    """Banding of the 0-100 office health score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class HealthTrend(str, Enum):
    """Direction of recent referral momentum relative to the trailing year."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
