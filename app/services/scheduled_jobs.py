"""Daily performance collection and learning job."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.best_effort import run_best_effort
from app.repositories.contracts import CronLogRepository
from app.services.learning_extractor import LearningDataExtractor, LearningRunResult
from app.services.performance_collector import CollectionResult, PerformanceCollector

logger = logging.getLogger(__name__)

JOB_NAME = "gsc-collect"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(slots=True)
class DailyJobResult:
    collection: CollectionResult
    learning: LearningRunResult | None = None
    tier_alerts: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.collection.success

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "collection": self.collection.as_dict(),
            "learning_pipeline": self.learning.as_dict() if self.learning else None,
            "tier_alerts": self.tier_alerts,
            "errors": list(self.errors),
        }


async def run_daily_collection(
    *,
    collector: PerformanceCollector,
    extractor: LearningDataExtractor,
    cron_logs: CronLogRepository | None = None,
    days_ago: int = 28,
) -> DailyJobResult:
    """Collect performance, learn from new high performers, raise tier alerts, log the run."""
    collection = await collector.collect_all(days_ago)
    result = DailyJobResult(collection=collection)

    if not collection.success:
        logger.warning("Daily collection failed", extra={"errors": collection.errors})
        result.errors.extend(collection.errors)
        await _log_run(cron_logs, STATUS_FAILED, error_message=", ".join(collection.errors))
        return result

    if collection.high_performers > 0:
        result.learning = await extractor.learn_from_high_performers()

    try:
        result.tier_alerts = await collector.record_tier_alerts(days_ago=days_ago)
    except Exception as e:
        logger.warning("Tier change detection failed", extra={"error": str(e)})
        result.errors.append(f"Tier alerts: {e}")

    logger.info("Daily collection complete", extra={"job": JOB_NAME, **collection.as_dict()})
    await _log_run(cron_logs, STATUS_COMPLETED, result_data=result.as_dict())
    return result


async def _log_run(
    cron_logs: CronLogRepository | None,
    status: str,
    *,
    result_data: dict[str, Any] | None = None,
    error_message: str | None = None,
) -> None:
    if cron_logs is None:
        return
    await run_best_effort(
        cron_logs.add(
            job_name=JOB_NAME,
            status=status,
            result_data=result_data,
            error_message=error_message,
        ),
        operation_name="cron_log",
        log_context={"job": JOB_NAME, "status": status},
    )
