"""Repository for content performance records and tier alerts."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from app.core.database import SessionFactory, session_scope
from app.core.db_retry import run_with_transient_db_retry
from app.models.base import generate_uuid
from app.models.performance import ContentPerformance, PerformanceAlert
from app.repositories.records import PerformanceRecord, TierChange
from app.services.performance_classifier import PerformanceTier

logger = logging.getLogger(__name__)

UNIQUE_RANGE_CONSTRAINT = "content_performance_blog_date_unique"


def _to_record(row: ContentPerformance) -> PerformanceRecord:
    return PerformanceRecord(
        id=str(row.id),
        content_item_id=str(row.blog_post_id),
        impressions=row.gsc_impressions,
        clicks=row.gsc_clicks,
        ctr=row.gsc_ctr,
        position=row.gsc_position,
        date_range_start=row.date_range_start,
        date_range_end=row.date_range_end,
        performance_tier=PerformanceTier(row.performance_tier),
        is_high_performer=row.is_high_performer,
        updated_at=row.updated_at,
    )


def _column_values(record: PerformanceRecord) -> dict[str, object]:
    return {
        "gsc_impressions": record.impressions,
        "gsc_clicks": record.clicks,
        "gsc_ctr": record.ctr,
        "gsc_position": record.position,
        "is_high_performer": record.is_high_performer,
        "performance_tier": record.performance_tier.value,
    }


class SqlPerformanceRecordRepository:
    """Upserts and reads ContentPerformance rows."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def upsert(self, record: PerformanceRecord) -> bool:
        values = _column_values(record)

        async def _upsert_once() -> bool:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(
                    select(ContentPerformance).where(
                        ContentPerformance.blog_post_id == record.content_item_id,
                        ContentPerformance.date_range_start == record.date_range_start,
                        ContentPerformance.date_range_end == record.date_range_end,
                    )
                )
                existing = result.scalar_one_or_none()
                if existing is not None:
                    for column, value in values.items():
                        setattr(existing, column, value)
                    return False

                # A concurrent run may insert the same key first; last write wins.
                stmt = (
                    pg_insert(ContentPerformance)
                    .values(
                        id=generate_uuid(),
                        blog_post_id=record.content_item_id,
                        date_range_start=record.date_range_start,
                        date_range_end=record.date_range_end,
                        **values,
                    )
                    .on_conflict_do_update(
                        constraint=UNIQUE_RANGE_CONSTRAINT,
                        set_={**values, "updated_at": func.now()},
                    )
                )
                await session.execute(stmt)
                return True

        return await run_with_transient_db_retry(
            _upsert_once,
            operation_name="content_performance_upsert",
            log_context={"content_item_id": record.content_item_id},
        )

    async def list_in_range(self, start: date, end: date) -> list[PerformanceRecord]:
        async def _load() -> list[PerformanceRecord]:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ContentPerformance).where(
                        ContentPerformance.date_range_start >= start,
                        ContentPerformance.date_range_end <= end,
                    )
                )
                return [_to_record(row) for row in result.scalars()]

        return await run_with_transient_db_retry(_load, operation_name="content_performance_in_range")

    async def list_high_performers(self, *, limit: int) -> list[PerformanceRecord]:
        async def _load() -> list[PerformanceRecord]:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ContentPerformance)
                    .where(ContentPerformance.is_high_performer.is_(True))
                    .order_by(ContentPerformance.gsc_clicks.desc())
                    .limit(limit)
                )
                return [_to_record(row) for row in result.scalars()]

        return await run_with_transient_db_retry(_load, operation_name="content_performance_high_performers")

    async def latest_two_per_item(self, window_days: int) -> dict[str, list[PerformanceRecord]]:
        async def _load() -> dict[str, list[PerformanceRecord]]:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ContentPerformance)
                    .where(
                        ContentPerformance.date_range_end - ContentPerformance.date_range_start == window_days
                    )
                    .order_by(
                        ContentPerformance.blog_post_id,
                        ContentPerformance.date_range_end.desc(),
                    )
                )
                grouped: dict[str, list[PerformanceRecord]] = {}
                for row in result.scalars():
                    bucket = grouped.setdefault(str(row.blog_post_id), [])
                    if len(bucket) < 2:
                        bucket.append(_to_record(row))
                return grouped

        return await run_with_transient_db_retry(_load, operation_name="content_performance_latest_two")


class SqlPerformanceAlertRepository:
    """Writes tier-change alerts."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def add_tier_change(self, change: TierChange, message: str) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                PerformanceAlert(
                    blog_post_id=change.content_item_id,
                    alert_type="tier_upgrade" if change.is_upgrade else "tier_downgrade",
                    previous_value=change.previous_tier.value,
                    current_value=change.current_tier.value,
                    message=message,
                )
            )
