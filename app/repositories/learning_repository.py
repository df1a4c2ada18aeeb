"""Repositories for learning data, feedback audit logs and cron logs."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select

from app.core.database import SessionFactory, session_scope
from app.core.db_retry import run_with_transient_db_retry
from app.models.learning import AdminFeedbackLog, CronLog, LearningData
from app.repositories.records import (
    FeedbackLogEntry,
    FeedbackType,
    LearningDataRecord,
    LearningSource,
)

logger = logging.getLogger(__name__)


def _to_record(row: LearningData) -> LearningDataRecord:
    return LearningDataRecord(
        id=str(row.id),
        source_type=LearningSource(row.source_type),
        content_item_id=str(row.blog_post_id) if row.blog_post_id else None,
        locale=row.locale,
        category=row.category,
        content_excerpt=row.content_excerpt or "",
        title_pattern=row.title_pattern or "",
        writing_style_notes=row.writing_style_notes or "",
        seo_patterns=dict(row.seo_patterns or {}),
        performance_score=row.performance_score or 0,
        feedback_type=FeedbackType(row.feedback_type) if row.feedback_type else None,
        created_by=row.created_by,
        created_at=row.created_at,
    )


class SqlLearningDataRepository:
    """Persists and queries LearningData rows."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def add(self, record: LearningDataRecord) -> str:
        row = LearningData(
            source_type=record.source_type.value,
            blog_post_id=record.content_item_id,
            feedback_type=record.feedback_type.value if record.feedback_type else None,
            locale=record.locale,
            category=record.category,
            content_excerpt=record.content_excerpt,
            title_pattern=record.title_pattern,
            writing_style_notes=record.writing_style_notes,
            seo_patterns=record.seo_patterns,
            performance_score=record.performance_score,
            created_by=record.created_by,
        )
        async with session_scope(self._session_factory) as session:
            session.add(row)
            await session.flush()
            learning_id = str(row.id)

        logger.info(
            "Learning data stored",
            extra={"learning_data_id": learning_id, "source_type": record.source_type.value},
        )
        return learning_id

    async def exists_for_item(self, content_item_id: str, source_type: LearningSource) -> bool:
        async def _load() -> bool:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(LearningData.id)
                    .where(
                        LearningData.blog_post_id == content_item_id,
                        LearningData.source_type == source_type.value,
                    )
                    .limit(1)
                )
                return result.scalar_one_or_none() is not None

        return await run_with_transient_db_retry(_load, operation_name="learning_data_exists")

    async def list_for_locale(
        self,
        locale: str,
        *,
        source_types: list[LearningSource] | None = None,
        limit: int = 50,
    ) -> list[LearningDataRecord]:
        async def _load() -> list[LearningDataRecord]:
            async with self._session_factory() as session:
                stmt = select(LearningData).where(LearningData.locale == locale)
                if source_types:
                    stmt = stmt.where(
                        LearningData.source_type.in_([source.value for source in source_types])
                    )
                stmt = stmt.order_by(
                    LearningData.performance_score.desc().nulls_last(),
                    LearningData.created_at.desc(),
                ).limit(limit)
                result = await session.execute(stmt)
                return [_to_record(row) for row in result.scalars()]

        return await run_with_transient_db_retry(_load, operation_name="learning_data_for_locale")


class SqlFeedbackLogRepository:
    """Appends admin feedback audit entries."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def add(self, entry: FeedbackLogEntry) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                AdminFeedbackLog(
                    admin_id=entry.admin_id,
                    blog_post_id=entry.content_item_id,
                    feedback_type=entry.feedback_type.value,
                    notes=entry.notes,
                    learning_data_id=entry.learning_data_id,
                )
            )


class SqlCronLogRepository:
    """Appends scheduled-job summaries."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def add(
        self,
        *,
        job_name: str,
        status: str,
        result_data: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                CronLog(
                    job_name=job_name,
                    status=status,
                    result_data=result_data,
                    error_message=error_message,
                )
            )
