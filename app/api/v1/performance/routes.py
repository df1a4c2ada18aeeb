"""Performance API endpoints: summaries and on-demand collection."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query, status

from app.api.v1.performance.constants import (
    DEFAULT_DAYS_AGO,
    MAX_DAYS_AGO,
    NO_DATA_DETAIL,
    NO_RECORDS_DETAIL,
    NOT_CONFIGURED_DETAIL,
)
from app.core.exceptions import ExternalAPIError
from app.dependencies import AdminUser, Collector
from app.schemas.performance import PerformanceRecordResponse, PerformanceSummaryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/summary", response_model=PerformanceSummaryResponse)
async def get_summary(
    _admin: AdminUser,
    collector: Collector,
    days_ago: int = Query(DEFAULT_DAYS_AGO, ge=1, le=MAX_DAYS_AGO),
) -> PerformanceSummaryResponse:
    """Site-wide performance summary for the reporting window."""
    summary = await collector.summarize(days_ago)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_RECORDS_DETAIL)
    return PerformanceSummaryResponse(**asdict(summary))


@router.get("/summary/locales", response_model=dict[str, PerformanceSummaryResponse])
async def get_summary_by_locale(
    _admin: AdminUser,
    collector: Collector,
    days_ago: int = Query(DEFAULT_DAYS_AGO, ge=1, le=MAX_DAYS_AGO),
) -> dict[str, PerformanceSummaryResponse]:
    """Performance summary per locale."""
    summaries = await collector.summarize_by_locale(days_ago)
    return {locale: PerformanceSummaryResponse(**asdict(summary)) for locale, summary in summaries.items()}


@router.post("/{content_item_id}/collect", response_model=PerformanceRecordResponse)
async def collect_for_item(
    content_item_id: str,
    admin: AdminUser,
    collector: Collector,
    days_ago: int = Query(DEFAULT_DAYS_AGO, ge=1, le=MAX_DAYS_AGO),
) -> PerformanceRecordResponse:
    """Collect and store one article's search performance now."""
    if not collector.configured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=NOT_CONFIGURED_DETAIL)

    try:
        record = await collector.collect_for_item(content_item_id, days_ago)
    except ExternalAPIError as e:
        logger.warning(
            "On-demand collection failed",
            extra={"content_item_id": content_item_id, "admin_id": admin.user_id, "error": e.message},
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message) from e

    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_DATA_DETAIL)

    return PerformanceRecordResponse(
        content_item_id=record.content_item_id,
        impressions=record.impressions,
        clicks=record.clicks,
        ctr=record.ctr,
        position=record.position,
        date_range_start=record.date_range_start,
        date_range_end=record.date_range_end,
        performance_tier=record.performance_tier.value,
        is_high_performer=record.is_high_performer,
    )
