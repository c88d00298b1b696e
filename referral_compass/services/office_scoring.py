"""
Office Scoring Engine Service

This module turns raw monthly referral counts into per-office relationship metrics:
rolling aggregates (L12, R3), recency (MSLR), a ranking score, a quartile tier, a
percentile, and an optional At-Risk / Emerging label.

Pipeline:
1. Aggregate - all-time total, L12, R3, current month, MSLR per office
2. Partition - no-history (Cold), dormant (MSLR >= cutoff), active
3. Rank - active offices by score descending, ties by MSLR ascending
4. Quartile tiering - VIP = top ceil(N * 0.25), Warm = up to ceil(N * 0.50), rest Cold
5. Percentile - round(((N - i) / N) * 100), half rounded up
6. Conditional labels - At-Risk / Emerging from the L12 ranking
7. Merge - one record per catalog office, in catalog order

Windows are calendar-month based and always relative to the reference month passed
in by the caller; nothing here reads the clock. The computation is pure and
deterministic: identical inputs and reference month give identical output.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from referral_compass.core.config import Settings, get_settings
from referral_compass.models.enums import ConditionalLabel, OfficeTier, ScoringStrategy
from referral_compass.models.schemas import MonthlyReferral, OfficeMetrics, OfficeRef
from referral_compass.services.exceptions import InvalidReferralCount, MalformedInput
from referral_compass.services.months import in_trailing_window, months_between, parse_year_month


logger = logging.getLogger(__name__)

ReferralInput = Union[MonthlyReferral, Mapping[str, Any]]
OfficeInput = Union[OfficeRef, Mapping[str, Any], str]

# Top half / bottom half split used by the At-Risk and Emerging labels
LABEL_SPLIT_QUANTILE = 0.5


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class ScoringConfig:
    """
    Tunable parameters of the scoring engine.

    Defaults match the platform settings; pass an explicit instance to
    compute_office_metrics() to score with different parameters.
    """
    l12_window_months: int = 12
    r3_window_months: int = 3
    dormant_mslr_months: int = 6
    mslr_never_sentinel: int = 999
    l12_weight: float = 0.6
    r3_weight: float = 0.4
    vip_quantile: float = 0.25
    warm_quantile: float = 0.50
    strategy: ScoringStrategy = ScoringStrategy.WEIGHTED

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ScoringConfig":
        settings = settings or get_settings()
        return cls(
            l12_window_months=settings.l12_window_months,
            r3_window_months=settings.r3_window_months,
            dormant_mslr_months=settings.dormant_mslr_months,
            mslr_never_sentinel=settings.mslr_never_sentinel,
            l12_weight=settings.l12_weight,
            r3_weight=settings.r3_weight,
            vip_quantile=settings.vip_quantile,
            warm_quantile=settings.warm_quantile,
            strategy=settings.scoring_strategy,
        )


@dataclass
class OfficeAggregate:
    """Per-office rolling aggregates before ranking."""
    office_id: str
    name: Optional[str] = None
    total_referrals: int = 0
    current_month_referrals: int = 0
    l12: int = 0
    r3: int = 0
    mslr: int = 0
    last_active_month: Optional[str] = None
    months: Dict[str, int] = field(default_factory=dict)

    @property
    def has_history(self) -> bool:
        return self.total_referrals > 0


# =============================================================================
# Input Validation
# =============================================================================


_MISSING = object()


def _read(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        value = row.get(key, _MISSING)
    else:
        value = getattr(row, key, _MISSING)
    if value is _MISSING:
        raise MalformedInput(f"Referral row is missing '{key}'", field=key)
    return value


def validate_referral(row: ReferralInput) -> Tuple[str, str, int]:
    """
    Validate one referral row and return (office_id, year_month, patient_count).

    Accepts MonthlyReferral models or plain mappings with the same camelCase keys.

    Raises:
        MalformedInput: Missing office id or month not in YYYY-MM form
        InvalidReferralCount: Count is negative, fractional, or not a number
    """
    office_id = _read(row, "officeId")
    year_month = _read(row, "yearMonth")
    patient_count = _read(row, "patientCount")

    if not isinstance(office_id, str) or not office_id:
        raise MalformedInput("Referral row has an empty officeId", field="officeId", value=office_id)

    parse_year_month(year_month)

    # bool is an int subclass; True is not a patient count
    if isinstance(patient_count, bool) or not isinstance(patient_count, int):
        raise InvalidReferralCount(
            f"patientCount must be an integer, got {patient_count!r}",
            field="patientCount",
            value=patient_count,
            office_id=office_id,
        )
    if patient_count < 0:
        raise InvalidReferralCount(
            f"patientCount must be non-negative, got {patient_count}",
            field="patientCount",
            value=patient_count,
            office_id=office_id,
        )

    return office_id, year_month, patient_count


def normalize_catalog(office_catalog: Iterable[OfficeInput]) -> List[Tuple[str, Optional[str]]]:
    """
    Reduce catalog entries to (office_id, name) pairs, preserving order.

    Raises:
        MalformedInput: Empty catalog, empty id, or a repeated office id
    """
    entries: List[Tuple[str, Optional[str]]] = []
    seen = set()

    for entry in office_catalog:
        if isinstance(entry, str):
            office_id, name = entry, None
        elif isinstance(entry, Mapping):
            office_id, name = entry.get("officeId"), entry.get("name")
        else:
            office_id, name = entry.officeId, entry.name

        if not isinstance(office_id, str) or not office_id:
            raise MalformedInput("Office catalog entry has an empty officeId", field="officeId", value=office_id)
        if office_id in seen:
            raise MalformedInput(
                f"Office '{office_id}' appears more than once in the catalog",
                field="officeId",
                value=office_id,
                office_id=office_id,
            )
        seen.add(office_id)
        entries.append((office_id, name))

    if not entries:
        raise MalformedInput("Office catalog must contain at least one office", field="officeCatalog")

    return entries


def group_referrals(
    referrals: Iterable[ReferralInput],
    office_ids: Iterable[str],
    sum_duplicates: bool = False
) -> Dict[str, Dict[str, int]]:
    """
    Group validated referral rows into {office_id: {year_month: count}}.

    Every catalog office gets an entry, even with no rows.

    Args:
        referrals: Monthly referral rows in any order
        office_ids: Catalog office ids
        sum_duplicates: Add up repeated (office, month) pairs instead of rejecting them

    Raises:
        MalformedInput: Row for an office outside the catalog, or a duplicate
            (office, month) pair when sum_duplicates is False
    """
    grouped: Dict[str, Dict[str, int]] = {office_id: {} for office_id in office_ids}

    for row in referrals:
        office_id, year_month, patient_count = validate_referral(row)

        if office_id not in grouped:
            raise MalformedInput(
                f"Referral row references office '{office_id}' which is not in the catalog",
                field="officeId",
                value=office_id,
                office_id=office_id,
            )

        months = grouped[office_id]
        if year_month in months and not sum_duplicates:
            raise MalformedInput(
                f"Duplicate referral row for office '{office_id}' in {year_month}",
                field="yearMonth",
                value=year_month,
                office_id=office_id,
            )
        months[year_month] = months.get(year_month, 0) + patient_count

    return grouped


# =============================================================================
# Step 1: Aggregation
# =============================================================================


def months_since_last_referral(
    now: str,
    months: Mapping[str, int],
    sentinel: int = 999
) -> Tuple[int, Optional[str]]:
    """
    Whole months elapsed since the last month with a nonzero count.

    A month counts as fully elapsed once it has closed, so a referral in the
    reference month or the month before it gives 0, two months back gives 1,
    and so on. Months after now are ignored for recency.

    Returns:
        Tuple of (mslr, last_active_month); (sentinel, None) if never referred
    """
    active_months = [
        month for month, count in months.items()
        if count > 0 and months_between(now, month) >= 0
    ]
    if not active_months:
        return sentinel, None

    # YYYY-MM strings sort chronologically
    last_active = max(active_months)
    return max(0, months_between(now, last_active) - 1), last_active


def aggregate_office(
    office_id: str,
    months: Mapping[str, int],
    now: str,
    config: ScoringConfig,
    name: Optional[str] = None
) -> OfficeAggregate:
    """
    Compute total, L12, R3, current-month count and MSLR for one office.

    A month is inside an N-month window iff 0 <= months_between(now, month) < N.
    """
    total = 0
    l12 = 0
    r3 = 0
    current = 0

    for month, count in months.items():
        total += count
        if in_trailing_window(now, month, config.l12_window_months):
            l12 += count
        if in_trailing_window(now, month, config.r3_window_months):
            r3 += count
        if in_trailing_window(now, month, 1):
            current += count

    mslr, last_active = months_since_last_referral(now, months, config.mslr_never_sentinel)

    return OfficeAggregate(
        office_id=office_id,
        name=name,
        total_referrals=total,
        current_month_referrals=current,
        l12=l12,
        r3=r3,
        mslr=mslr,
        last_active_month=last_active,
        months=dict(months),
    )


# =============================================================================
# Steps 2-6: Partition, Rank, Tier, Percentile, Labels
# =============================================================================


def is_dormant(aggregate: OfficeAggregate, config: ScoringConfig) -> bool:
    return aggregate.has_history and aggregate.mslr >= config.dormant_mslr_months


def is_active(aggregate: OfficeAggregate, config: ScoringConfig) -> bool:
    return aggregate.has_history and aggregate.mslr < config.dormant_mslr_months


def compute_score(aggregate: OfficeAggregate, config: ScoringConfig) -> float:
    """
    Ranking score for an active office.

    weighted: l12_weight * L12 + r3_weight * R3
    total_referrals: all-time total
    """
    if config.strategy == ScoringStrategy.TOTAL_REFERRALS:
        return float(aggregate.total_referrals)

    # Rounded so equal blends from different L12/R3 mixes compare as ties
    return round(config.l12_weight * aggregate.l12 + config.r3_weight * aggregate.r3, 6)


def rank_active_offices(
    active: Sequence[OfficeAggregate],
    config: ScoringConfig
) -> List[Tuple[OfficeAggregate, float]]:
    """
    Sort active offices best first.

    Order: score descending, then MSLR ascending (more recent wins a tie),
    then office id so the result never depends on input order.
    """
    scored = [(aggregate, compute_score(aggregate, config)) for aggregate in active]
    scored.sort(key=lambda item: (-item[1], item[0].mslr, item[0].office_id))
    return scored


def quartile_cutoffs(active_count: int, config: ScoringConfig) -> Tuple[int, int]:
    """Return (vip_cutoff, warm_cutoff) rank indexes for N active offices."""
    vip_cutoff = math.ceil(active_count * config.vip_quantile)
    warm_cutoff = math.ceil(active_count * config.warm_quantile)
    return vip_cutoff, warm_cutoff


def assign_quartile_tier(index: int, active_count: int, config: ScoringConfig) -> OfficeTier:
    """
    Tier for the office at 0-based rank index among active_count offices.

    - index < ceil(N * vip_quantile) -> VIP
    - index < ceil(N * warm_quantile) -> Warm
    - otherwise -> Cold
    """
    vip_cutoff, warm_cutoff = quartile_cutoffs(active_count, config)
    if index < vip_cutoff:
        return OfficeTier.VIP
    elif index < warm_cutoff:
        return OfficeTier.WARM
    else:
        return OfficeTier.COLD


def calculate_percentile(index: int, active_count: int) -> int:
    """
    round(((N - i) / N) * 100) with halves rounded up.

    Integer arithmetic keeps x.5 boundaries exact.
    """
    if active_count <= 0:
        raise ValueError("active_count must be positive")
    return (200 * (active_count - index) + active_count) // (2 * active_count)


def determine_conditional_labels(
    active: Sequence[OfficeAggregate]
) -> Dict[str, Optional[ConditionalLabel]]:
    """
    At-Risk / Emerging flags for active offices, keyed by office id.

    Offices are ranked by L12 (ties by MSLR, then id) and split at
    ceil(N * 0.5):
    - At-Risk: top half, r3 == 0 and l12 > 0
    - Emerging: bottom half, r3 > 0 and r3 > l12 / 4
    """
    labels: Dict[str, Optional[ConditionalLabel]] = {}
    if not active:
        return labels

    by_l12 = sorted(active, key=lambda agg: (-agg.l12, agg.mslr, agg.office_id))
    half = math.ceil(len(by_l12) * LABEL_SPLIT_QUANTILE)

    for index, aggregate in enumerate(by_l12):
        label: Optional[ConditionalLabel] = None
        if index < half:
            if aggregate.r3 == 0 and aggregate.l12 > 0:
                label = ConditionalLabel.AT_RISK
        else:
            if aggregate.r3 > 0 and 4 * aggregate.r3 > aggregate.l12:
                label = ConditionalLabel.EMERGING
        labels[aggregate.office_id] = label

    return labels


def _base_metrics(aggregate: OfficeAggregate, tier: OfficeTier) -> OfficeMetrics:
    return OfficeMetrics(
        officeId=aggregate.office_id,
        name=aggregate.name,
        totalReferrals=aggregate.total_referrals,
        currentMonthReferrals=aggregate.current_month_referrals,
        l12=aggregate.l12,
        r3=aggregate.r3,
        mslr=aggregate.mslr,
        lastActiveMonth=aggregate.last_active_month,
        tier=tier,
    )


# =============================================================================
# Main Entry Point
# =============================================================================


def compute_office_metrics(
    referrals: Iterable[ReferralInput],
    office_catalog: Iterable[OfficeInput],
    now: str,
    config: Optional[ScoringConfig] = None,
    sum_duplicates: bool = False
) -> List[OfficeMetrics]:
    """
    Score every office in the catalog against its monthly referral history.

    Args:
        referrals: MonthlyReferral rows (models or camelCase mappings), any order
        office_catalog: OfficeRef entries, mappings, or bare office ids
        now: Reference month (YYYY-MM); every window is relative to it
        config: Scoring parameters (defaults from settings)
        sum_duplicates: Sum repeated (office, month) pairs instead of rejecting

    Returns:
        One OfficeMetrics per catalog office, in catalog order

    Raises:
        MalformedInput: Bad month string, duplicate pair, unknown office, bad catalog
        InvalidReferralCount: Negative or non-integer patient count
    """
    if config is None:
        config = ScoringConfig.from_settings()

    parse_year_month(now, field="now")

    catalog = normalize_catalog(office_catalog)
    grouped = group_referrals(referrals, [office_id for office_id, _ in catalog], sum_duplicates)

    aggregates = [
        aggregate_office(office_id, grouped[office_id], now, config, name=name)
        for office_id, name in catalog
    ]

    results: Dict[str, OfficeMetrics] = {}

    # Partition
    active: List[OfficeAggregate] = []
    dormant_count = 0
    for aggregate in aggregates:
        if not aggregate.has_history:
            results[aggregate.office_id] = _base_metrics(aggregate, OfficeTier.COLD)
        elif is_dormant(aggregate, config):
            results[aggregate.office_id] = _base_metrics(aggregate, OfficeTier.DORMANT)
            dormant_count += 1
        else:
            active.append(aggregate)

    # Rank, tier, percentile and label the active offices
    active_count = len(active)
    if active_count > 0:
        labels = determine_conditional_labels(active)
        for index, (aggregate, score) in enumerate(rank_active_offices(active, config)):
            metrics = _base_metrics(aggregate, assign_quartile_tier(index, active_count, config))
            metrics.score = score
            metrics.rank = index
            metrics.percentile = calculate_percentile(index, active_count)
            metrics.conditionalLabel = labels.get(aggregate.office_id)
            results[aggregate.office_id] = metrics

    logger.info(
        f"Scored {len(aggregates)} offices for {now}: "
        f"{active_count} active, {dormant_count} dormant, "
        f"{len(aggregates) - active_count - dormant_count} without history"
    )

    return [results[office_id] for office_id, _ in catalog]


__all__ = [
    "ScoringConfig",
    "OfficeAggregate",
    "LABEL_SPLIT_QUANTILE",
    "validate_referral",
    "normalize_catalog",
    "group_referrals",
    "months_since_last_referral",
    "aggregate_office",
    "is_dormant",
    "is_active",
    "compute_score",
    "rank_active_offices",
    "quartile_cutoffs",
    "assign_quartile_tier",
    "calculate_percentile",
    "determine_conditional_labels",
    "compute_office_metrics",
]
