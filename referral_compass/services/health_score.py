"""
Office health score.

Blends four signals into a 0-100 partnership health score:
- Referral frequency (40 pts) from L12
- Engagement recency (30 pts) from MSLR
- Recent momentum (20 pts) from R3 against the R3 expected from L12 (L12 / 4)
- Tier bonus (10 pts)

The score is banded into excellent / good / fair / poor and paired with a
momentum trend.
"""

from typing import List, Optional, Tuple

from referral_compass.models.enums import HealthLevel, HealthTrend, OfficeTier
from referral_compass.models.schemas import OfficeHealth, OfficeMetrics


TIER_BONUS = {
    OfficeTier.VIP: 10,
    OfficeTier.WARM: 7,
    OfficeTier.DORMANT: 3,
    OfficeTier.COLD: 0,
}


def frequency_points(l12: int) -> int:
    if l12 >= 12:
        return 40
    elif l12 >= 6:
        return 30
    elif l12 >= 3:
        return 20
    elif l12 >= 1:
        return 10
    return 0


def recency_points(mslr: int) -> int:
    if mslr == 0:
        return 30
    elif mslr <= 1:
        return 25
    elif mslr <= 3:
        return 15
    elif mslr <= 6:
        return 5
    return 0


def momentum_points(l12: int, r3: int) -> Tuple[int, HealthTrend]:
    """
    Points and trend for R3 measured against a quarter of L12.

    More than 1.5x expected is an upswing; below expected is a decline.
    """
    expected_r3 = l12 / 4
    if r3 > expected_r3 * 1.5:
        return 20, HealthTrend.UP
    elif r3 >= expected_r3:
        return 15, HealthTrend.STABLE
    elif r3 >= expected_r3 * 0.5:
        return 10, HealthTrend.DOWN
    elif r3 > 0:
        return 5, HealthTrend.DOWN
    elif l12 > 0:
        return 0, HealthTrend.DOWN
    return 0, HealthTrend.STABLE


def health_level(score: int) -> HealthLevel:
    if score >= 80:
        return HealthLevel.EXCELLENT
    elif score >= 60:
        return HealthLevel.GOOD
    elif score >= 40:
        return HealthLevel.FAIR
    return HealthLevel.POOR


def compute_health_score(
    l12: int,
    r3: int,
    mslr: int,
    tier: Optional[OfficeTier] = None,
    office_id: Optional[str] = None
) -> OfficeHealth:
    """
    Compute the health score for one office.

    Args:
        l12: Referrals in the trailing 12 months
        r3: Referrals in the trailing 3 months
        mslr: Months since last referral
        tier: Assigned tier, if known
        office_id: Carried through to the result

    Returns:
        OfficeHealth with score (clamped to 0-100), trend and level
    """
    momentum, trend = momentum_points(l12, r3)
    score = frequency_points(l12) + recency_points(mslr) + momentum
    if tier is not None:
        score += TIER_BONUS[OfficeTier(tier)]

    score = min(100, max(0, score))

    return OfficeHealth(
        officeId=office_id,
        score=score,
        trend=trend,
        level=health_level(score),
    )


def health_for_metrics(offices: List[OfficeMetrics]) -> List[OfficeHealth]:
    """Health score for each scored office, in the same order."""
    return [
        compute_health_score(
            l12=office.l12,
            r3=office.r3,
            mslr=office.mslr,
            tier=office.tier,
            office_id=office.officeId,
        )
        for office in offices
    ]


__all__ = [
    "TIER_BONUS",
    "frequency_points",
    "recency_points",
    "momentum_points",
    "health_level",
    "compute_health_score",
    "health_for_metrics",
]
