"""
Tier summary and grouping for scored offices.

Produces the headline counts shown above the office list and the per-tier
groupings, with each group ordered by most recent activity (R3) first.
"""

from typing import Dict, List, Optional

from referral_compass.models.enums import ConditionalLabel, OfficeTier
from referral_compass.models.schemas import OfficeMetrics, TierSummary


TIER_DISPLAY_ORDER = [
    OfficeTier.VIP,
    OfficeTier.WARM,
    OfficeTier.COLD,
    OfficeTier.DORMANT,
]


def summarize_tiers(offices: List[OfficeMetrics]) -> TierSummary:
    """
    Count offices per tier and label and total their L12 and current month.

    Args:
        offices: Output of compute_office_metrics

    Returns:
        TierSummary for the whole list
    """
    counts = {tier: 0 for tier in OfficeTier}
    at_risk = 0
    emerging = 0

    for office in offices:
        counts[office.tier] += 1
        if office.conditionalLabel == ConditionalLabel.AT_RISK:
            at_risk += 1
        elif office.conditionalLabel == ConditionalLabel.EMERGING:
            emerging += 1

    return TierSummary(
        total=len(offices),
        vip=counts[OfficeTier.VIP],
        warm=counts[OfficeTier.WARM],
        cold=counts[OfficeTier.COLD],
        dormant=counts[OfficeTier.DORMANT],
        atRisk=at_risk,
        emerging=emerging,
        l12Total=sum(office.l12 for office in offices),
        currentMonthTotal=sum(office.currentMonthReferrals for office in offices),
    )


def group_by_tier(offices: List[OfficeMetrics]) -> Dict[OfficeTier, List[OfficeMetrics]]:
    """
    Group offices by tier in display order (VIP, Warm, Cold, Dormant).

    Within a group offices are ordered by R3 descending; the sort is stable so
    equal R3 keeps the incoming order.
    """
    grouped: Dict[OfficeTier, List[OfficeMetrics]] = {tier: [] for tier in TIER_DISPLAY_ORDER}
    for office in offices:
        grouped[office.tier].append(office)

    for tier in grouped:
        grouped[tier].sort(key=lambda office: -office.r3)

    return grouped


def filter_by_tier(
    offices: List[OfficeMetrics],
    tier: Optional[OfficeTier] = None
) -> List[OfficeMetrics]:
    """Offices in the given tier; all offices when tier is None."""
    if tier is None:
        return list(offices)
    return [office for office in offices if office.tier == tier]


__all__ = [
    "TIER_DISPLAY_ORDER",
    "summarize_tiers",
    "group_by_tier",
    "filter_by_tier",
]
