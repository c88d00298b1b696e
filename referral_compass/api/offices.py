"""
FastAPI router module for office scoring.

Implements:
- POST /offices/metrics: score a posted referral snapshot
- GET /offices/metrics: fetch the current snapshot from the database and score it
- POST /offices/summary: tier counts for a posted snapshot
- POST /offices/health: health scores for a posted snapshot
- POST /offices/import/preview: parse a monthly referral CSV sheet
- GET /offices/import/template: blank CSV template

Scoring input errors (bad months, negative counts, duplicate rows) are returned as
422 responses whose detail names the error type and offending field.
"""

import dataclasses
import logging
from typing import List, Optional

import asyncpg
from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from referral_compass.core.config import Settings
from referral_compass.core.dependencies import DBSessionDep, SettingsDep
from referral_compass.models import (
    ImportPreview,
    MonthlyReferral,
    OfficeHealthResponse,
    OfficeMetrics,
    OfficeMetricsResponse,
    OfficeRef,
    OfficeTier,
    ScoringRequest,
    ScoringStrategy,
    TierSummary,
)
from referral_compass.services.exceptions import ScoringError
from referral_compass.services.health_score import health_for_metrics
from referral_compass.services.ingestion import TEMPLATE_CSV, ingest_referral_csv
from referral_compass.services.months import current_year_month, parse_year_month
from referral_compass.services.office_scoring import ScoringConfig, compute_office_metrics
from referral_compass.services.referral_source import fetch_scoring_snapshot
from referral_compass.services.tier_summary import filter_by_tier, summarize_tiers


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offices")


# =============================================================================
# Helpers
# =============================================================================


def _scoring_config(settings: Settings, strategy: Optional[ScoringStrategy]) -> ScoringConfig:
    config = ScoringConfig.from_settings(settings)
    if strategy is not None:
        config = dataclasses.replace(config, strategy=strategy)
    return config


def _score(
    referrals: List[MonthlyReferral],
    offices: List[OfficeRef],
    now: str,
    config: ScoringConfig
) -> List[OfficeMetrics]:
    """Run the engine, translating input errors to 422."""
    try:
        return compute_office_metrics(referrals, offices, now, config=config)
    except ScoringError as e:
        logger.warning(f"Rejected scoring input: {e.message}")
        raise HTTPException(status_code=422, detail=e.to_dict())


def _build_response(
    metrics: List[OfficeMetrics],
    now: str,
    config: ScoringConfig,
    tier: Optional[OfficeTier]
) -> OfficeMetricsResponse:
    # Summary always covers every office; the tier filter only narrows the list
    return OfficeMetricsResponse(
        now=now,
        strategy=config.strategy,
        offices=filter_by_tier(metrics, tier),
        summary=summarize_tiers(metrics),
    )


# =============================================================================
# Scoring Endpoints
# =============================================================================


@router.post("/metrics", response_model=OfficeMetricsResponse)
async def score_snapshot(
    settings: SettingsDep,
    request: ScoringRequest = Body(...),
    tier: Optional[OfficeTier] = Query(default=None, description="Only return offices in this tier"),
) -> OfficeMetricsResponse:
    """
    Score a posted snapshot of offices and monthly referral counts.
    """
    config = _scoring_config(settings, request.strategy)
    metrics = _score(request.referrals, request.offices, request.now, config)
    logger.info(f"Scored {len(metrics)} posted offices for {request.now}")
    return _build_response(metrics, request.now, config, tier)


@router.get("/metrics", response_model=OfficeMetricsResponse)
async def score_current_offices(
    db: DBSessionDep,
    settings: SettingsDep,
    now: Optional[str] = Query(default=None, description="Reference month (YYYY-MM); defaults to this month"),
    owner_id: Optional[str] = Query(default=None, description="Restrict to offices created by this user"),
    strategy: Optional[ScoringStrategy] = Query(default=None, description="Ranking strategy override"),
    tier: Optional[OfficeTier] = Query(default=None, description="Only return offices in this tier"),
) -> OfficeMetricsResponse:
    """
    Fetch the active office catalog and its referral history, then score it.

    Raises:
        HTTPException(503): Database not configured or unreachable
        HTTPException(422): Stored rows fail engine validation
        HTTPException(500): Unexpected failure while fetching
    """
    now = now or current_year_month()
    config = _scoring_config(settings, strategy)

    try:
        offices, referrals = await fetch_scoring_snapshot(db, owner_id=owner_id)
    except (asyncpg.PostgresError, OSError) as e:
        logger.exception("Error fetching office referral snapshot")
        raise HTTPException(
            status_code=503,
            detail=f"Failed to fetch office referrals: {str(e)}"
        )
    except Exception as e:
        logger.exception("Unexpected error fetching office referral snapshot")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch office referrals: {str(e)}"
        )

    if not offices:
        try:
            parse_year_month(now, "now")
        except ScoringError as e:
            raise HTTPException(status_code=422, detail=e.to_dict())
        return OfficeMetricsResponse(now=now, strategy=config.strategy)

    metrics = _score(referrals, offices, now, config)
    return _build_response(metrics, now, config, tier)


@router.post("/summary", response_model=TierSummary)
async def summarize_snapshot(
    settings: SettingsDep,
    request: ScoringRequest = Body(...),
) -> TierSummary:
    """Tier and label counts for a posted snapshot."""
    config = _scoring_config(settings, request.strategy)
    return summarize_tiers(_score(request.referrals, request.offices, request.now, config))


@router.post("/health", response_model=OfficeHealthResponse)
async def health_for_snapshot(
    settings: SettingsDep,
    request: ScoringRequest = Body(...),
) -> OfficeHealthResponse:
    """0-100 health score for every office in a posted snapshot."""
    config = _scoring_config(settings, request.strategy)
    metrics = _score(request.referrals, request.offices, request.now, config)
    return OfficeHealthResponse(now=request.now, offices=health_for_metrics(metrics))


# =============================================================================
# CSV Import Endpoints
# =============================================================================


@router.post("/import/preview", response_model=ImportPreview)
async def preview_import(
    request: Request,
    year: int = Query(..., ge=1900, le=9999, description="Year the month columns belong to"),
) -> ImportPreview:
    """
    Parse a referral CSV sent as the raw request body.

    Validation problems come back in the preview's errors list with a 200
    status so the client can show every problem at once.
    """
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Request body must contain CSV data")

    preview = ingest_referral_csv(body, year)
    logger.info(
        f"Import preview for {year}: {len(preview.sources)} sources, "
        f"{len(preview.errors)} errors"
    )
    return preview


@router.get("/import/template", response_class=PlainTextResponse)
async def import_template() -> PlainTextResponse:
    """Download the CSV layout the import expects."""
    return PlainTextResponse(
        TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=patient-data-template.csv"},
    )
