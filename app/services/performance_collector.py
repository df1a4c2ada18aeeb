"""Collect Search Console performance into per-article records."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date

from app.core.best_effort import run_best_effort
from app.integrations.search_console import (
    DEFAULT_REPORTING_LAG_DAYS,
    SearchConsoleClient,
    reporting_date_range,
    weighted_position,
)
from app.repositories.contracts import (
    ContentItemRepository,
    PerformanceAlertRepository,
    PerformanceRecordRepository,
)
from app.repositories.records import ContentItem, PerformanceRecord, TierChange
from app.services.performance_classifier import (
    DEFAULT_HIGH_PERFORMER_CRITERIA,
    DEFAULT_TIER_THRESHOLDS,
    HighPerformerCriteria,
    PerformanceTier,
    TierThresholds,
    calculate_performance_score,
    classify_tier,
    is_high_performer,
)

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Search Console is not configured"

ProgressCallback = Callable[[int, int], None]


@dataclass(slots=True)
class CollectionResult:
    """Outcome of a full collection run."""

    success: bool
    pages_processed: int = 0
    new_records: int = 0
    updated_records: int = 0
    high_performers: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "pages_processed": self.pages_processed,
            "new_records": self.new_records,
            "updated_records": self.updated_records,
            "high_performers": self.high_performers,
            "errors": list(self.errors),
        }


@dataclass(slots=True)
class BatchCollectionResult:
    """Outcome of collecting a list of items chunk by chunk."""

    total: int
    collected: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PerformanceSummary:
    total_records: int
    top_tier: int
    mid_tier: int
    low_tier: int
    high_performers: int
    total_clicks: int
    total_impressions: int
    avg_ctr: float
    avg_position: float


def summarize_records(records: list[PerformanceRecord]) -> PerformanceSummary | None:
    """Aggregate records; CTR and position are impression-weighted."""
    if not records:
        return None
    total_clicks = sum(record.clicks for record in records)
    total_impressions = sum(record.impressions for record in records)
    tiers = [record.performance_tier for record in records]
    return PerformanceSummary(
        total_records=len(records),
        top_tier=tiers.count(PerformanceTier.TOP),
        mid_tier=tiers.count(PerformanceTier.MID),
        low_tier=tiers.count(PerformanceTier.LOW),
        high_performers=sum(1 for record in records if record.is_high_performer),
        total_clicks=total_clicks,
        total_impressions=total_impressions,
        avg_ctr=total_clicks / total_impressions if total_impressions > 0 else 0.0,
        avg_position=weighted_position([(record.impressions, record.position) for record in records]),
    )


def _url_lookup(items: list[ContentItem], site_base_url: str) -> dict[str, ContentItem]:
    """Map article URLs (absolute and path-only, with and without trailing slash)."""
    base = site_base_url.rstrip("/")
    lookup: dict[str, ContentItem] = {}
    for item in items:
        url = item.url(base)
        path = url[len(base):]
        for key in (url, f"{url}/", path, f"{path}/"):
            lookup[key] = item
    return lookup


class PerformanceCollector:
    """Pulls metrics from Search Console, classifies them and upserts records.

    The metrics client is optional; without it every collection reports
    "not configured" instead of raising.
    """

    def __init__(
        self,
        *,
        metrics_source: SearchConsoleClient | None,
        content_items: ContentItemRepository,
        performance_records: PerformanceRecordRepository,
        alerts: PerformanceAlertRepository | None = None,
        site_base_url: str,
        row_limit: int = 1000,
        batch_size: int = 50,
        batch_delay_seconds: float = 1.0,
        reporting_lag_days: int = DEFAULT_REPORTING_LAG_DAYS,
        tier_thresholds: TierThresholds = DEFAULT_TIER_THRESHOLDS,
        high_performer_criteria: HighPerformerCriteria = DEFAULT_HIGH_PERFORMER_CRITERIA,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.metrics_source = metrics_source
        self.content_items = content_items
        self.performance_records = performance_records
        self.alerts = alerts
        self.site_base_url = site_base_url.rstrip("/")
        self.row_limit = row_limit
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.reporting_lag_days = reporting_lag_days
        self.tier_thresholds = tier_thresholds
        self.high_performer_criteria = high_performer_criteria
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return self.metrics_source is not None

    def date_range(self, days_ago: int) -> tuple[date, date]:
        return reporting_date_range(days_ago, lag_days=self.reporting_lag_days)

    def _build_record(
        self,
        content_item_id: str,
        *,
        clicks: int,
        impressions: int,
        ctr: float,
        position: float,
        start: date,
        end: date,
    ) -> PerformanceRecord:
        return PerformanceRecord(
            content_item_id=content_item_id,
            impressions=impressions,
            clicks=clicks,
            ctr=ctr,
            position=position,
            date_range_start=start,
            date_range_end=end,
            performance_tier=classify_tier(ctr, position, self.tier_thresholds),
            is_high_performer=is_high_performer(
                ctr, clicks, position, impressions, self.high_performer_criteria
            ),
        )

    async def collect_all(self, days_ago: int = 28) -> CollectionResult:
        """Fetch every page's metrics for the range and upsert matching articles."""
        if self.metrics_source is None:
            logger.warning("Skipping performance collection", extra={"reason": NOT_CONFIGURED_MESSAGE})
            return CollectionResult(success=False, errors=[NOT_CONFIGURED_MESSAGE])

        start, end = self.date_range(days_ago)
        logger.info(
            "Collecting search performance",
            extra={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )

        try:
            async with self.metrics_source as source:
                rows = await source.fetch_all_pages_performance(start, end, row_limit=self.row_limit)
            items = await self.content_items.list_published()
        except Exception as e:
            logger.warning("Performance collection failed", extra={"error": str(e)})
            return CollectionResult(success=False, errors=[f"Failed to fetch performance data: {e}"])

        lookup = _url_lookup(items, self.site_base_url)
        result = CollectionResult(success=True)

        for row in rows:
            result.pages_processed += 1
            item = lookup.get(row.page or "")
            if item is None:
                continue

            record = self._build_record(
                item.id,
                clicks=row.clicks,
                impressions=row.impressions,
                ctr=row.ctr,
                position=row.position,
                start=start,
                end=end,
            )
            try:
                inserted = await self.performance_records.upsert(record)
            except Exception as e:
                logger.warning(
                    "Failed to store performance record",
                    extra={"content_item_id": item.id, "page": row.page, "error": str(e)},
                )
                result.errors.append(f"Failed to store performance for {item.slug}: {e}")
                continue

            if inserted:
                result.new_records += 1
            else:
                result.updated_records += 1
            if record.is_high_performer:
                result.high_performers += 1

        logger.info(
            "Performance collection complete",
            extra={
                "pages_processed": result.pages_processed,
                "new_records": result.new_records,
                "updated_records": result.updated_records,
                "high_performers": result.high_performers,
                "errors": len(result.errors),
            },
        )
        return result

    async def _collect_item(
        self,
        source: SearchConsoleClient,
        content_item_id: str,
        start: date,
        end: date,
    ) -> PerformanceRecord | None:
        item = await self.content_items.get(content_item_id)
        if item is None:
            logger.warning("Content item not found", extra={"content_item_id": content_item_id})
            return None

        page = await source.fetch_performance_for_single_page(item.url(self.site_base_url), start, end)
        if page is None:
            logger.info("No search data for content item", extra={"content_item_id": content_item_id})
            return None

        record = self._build_record(
            item.id,
            clicks=page.clicks,
            impressions=page.impressions,
            ctr=page.ctr,
            position=page.position,
            start=start,
            end=end,
        )
        await self.performance_records.upsert(record)
        return record

    async def collect_for_item(self, content_item_id: str, days_ago: int = 28) -> PerformanceRecord | None:
        """Collect and upsert one article's metrics; None when unavailable or unknown."""
        if self.metrics_source is None:
            return None
        start, end = self.date_range(days_ago)
        async with self.metrics_source as source:
            return await self._collect_item(source, content_item_id, start, end)

    async def collect_for_items(
        self,
        content_item_ids: list[str],
        days_ago: int = 28,
        on_progress: ProgressCallback | None = None,
    ) -> BatchCollectionResult:
        """Collect items in fixed-size chunks with a pause between chunks.

        Items within a chunk run concurrently; chunks run one after another.
        """
        result = BatchCollectionResult(total=len(content_item_ids))
        if self.metrics_source is None:
            result.errors.append(NOT_CONFIGURED_MESSAGE)
            return result

        start, end = self.date_range(days_ago)
        processed = 0
        async with self.metrics_source as source:
            for offset in range(0, len(content_item_ids), self.batch_size):
                chunk = content_item_ids[offset : offset + self.batch_size]
                outcomes = await asyncio.gather(
                    *(self._collect_item(source, item_id, start, end) for item_id in chunk),
                    return_exceptions=True,
                )
                for item_id, outcome in zip(chunk, outcomes):
                    if isinstance(outcome, Exception):
                        logger.warning(
                            "Item collection failed",
                            extra={"content_item_id": item_id, "error": str(outcome)},
                        )
                        result.errors.append(f"{item_id}: {outcome}")
                    elif outcome is None:
                        result.skipped += 1
                    else:
                        result.collected += 1

                processed += len(chunk)
                if on_progress is not None:
                    on_progress(processed, result.total)
                if processed < result.total and self.batch_delay_seconds > 0:
                    await self._sleep(self.batch_delay_seconds)

        return result

    async def summarize(self, days_ago: int = 28) -> PerformanceSummary | None:
        start, end = self.date_range(days_ago)
        return summarize_records(await self.performance_records.list_in_range(start, end))

    async def summarize_by_locale(self, days_ago: int = 28) -> dict[str, PerformanceSummary]:
        start, end = self.date_range(days_ago)
        records = await self.performance_records.list_in_range(start, end)
        items = await self.content_items.get_many(sorted({record.content_item_id for record in records}))

        grouped: dict[str, list[PerformanceRecord]] = {}
        for record in records:
            item = items.get(record.content_item_id)
            locale = item.locale if item else "unknown"
            grouped.setdefault(locale, []).append(record)

        summaries: dict[str, PerformanceSummary] = {}
        for locale, locale_records in grouped.items():
            summary = summarize_records(locale_records)
            if summary is not None:
                summaries[locale] = summary
        return summaries

    async def detect_tier_changes(self, days_ago: int = 28) -> list[TierChange]:
        """Compare each item's two most recent `days_ago`-day records and report tier moves.

        Windows of other lengths (e.g. on-demand collections) are not compared.
        """
        changes: list[TierChange] = []
        latest = await self.performance_records.latest_two_per_item(days_ago)
        for content_item_id, records in latest.items():
            if len(records) < 2:
                continue
            current, previous = records[0], records[1]
            if current.performance_tier == previous.performance_tier:
                continue
            changes.append(
                TierChange(
                    content_item_id=content_item_id,
                    previous_tier=previous.performance_tier,
                    current_tier=current.performance_tier,
                    clicks=current.clicks,
                    impressions=current.impressions,
                    ctr=current.ctr,
                    position=current.position,
                    performance_score=calculate_performance_score(
                        ctr=current.ctr,
                        clicks=current.clicks,
                        position=current.position,
                        impressions=current.impressions,
                    ),
                )
            )
        return changes

    async def record_tier_alerts(self, changes: list[TierChange] | None = None, *, days_ago: int = 28) -> int:
        """Persist tier-change alerts; each write is best-effort. Returns alerts written."""
        if self.alerts is None:
            return 0
        if changes is None:
            changes = await self.detect_tier_changes(days_ago)

        written = 0
        for change in changes:
            direction = "upgrade" if change.is_upgrade else "downgrade"
            message = (
                f"Tier {direction}: {change.previous_tier.value} -> {change.current_tier.value} "
                f"(clicks {change.clicks}, CTR {change.ctr:.2%}, position {change.position:.1f})"
            )
            stored = await run_best_effort(
                self._add_alert(self.alerts, change, message),
                operation_name="performance_alert",
                log_context={"content_item_id": change.content_item_id},
            )
            if stored:
                written += 1
        return written

    @staticmethod
    async def _add_alert(alerts: PerformanceAlertRepository, change: TierChange, message: str) -> bool:
        await alerts.add_tier_change(change, message)
        return True
