"""Scheduled job endpoints, authenticated with the cron secret."""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.dependencies import Collector, CronLogs, Extractor, require_cron_secret
from app.schemas.performance import DailyJobResponse
from app.services.scheduled_jobs import run_daily_collection

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.get("/gsc-collect", response_model=DailyJobResponse)
async def gsc_collect(
    collector: Collector,
    extractor: Extractor,
    cron_logs: CronLogs,
    days_ago: int = Query(settings.performance_days_ago, ge=1),
) -> DailyJobResponse | JSONResponse:
    """Daily Search Console collection followed by the learning run."""
    result = await run_daily_collection(
        collector=collector,
        extractor=extractor,
        cron_logs=cron_logs,
        days_ago=days_ago,
    )
    body = DailyJobResponse.model_validate(result.as_dict())
    if not result.success:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())
    return body
