"""Repository contracts the learning loop depends on."""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from app.repositories.records import (
    ContentItem,
    FeedbackLogEntry,
    LearningDataRecord,
    LearningSource,
    PerformanceRecord,
    TierChange,
)


class ContentItemRepository(Protocol):
    """Read access to published articles."""

    async def list_published(self) -> list[ContentItem]:
        """Return every published item (id, slug, locale at minimum)."""

    async def get(self, content_item_id: str) -> ContentItem | None:
        """Return one item with its content, or None."""

    async def get_many(self, content_item_ids: list[str]) -> dict[str, ContentItem]:
        """Return items keyed by id; unknown ids are omitted."""


class PerformanceRecordRepository(Protocol):
    """Persistence of per-item, per-date-range performance."""

    async def upsert(self, record: PerformanceRecord) -> bool:
        """Insert or update by (item, start, end). Returns True when inserted."""

    async def list_in_range(self, start: date, end: date) -> list[PerformanceRecord]:
        """Records whose range lies within [start, end]."""

    async def list_high_performers(self, *, limit: int) -> list[PerformanceRecord]:
        """High-performer records ordered by clicks, most first."""

    async def latest_two_per_item(self, window_days: int) -> dict[str, list[PerformanceRecord]]:
        """For each item, its two latest records spanning exactly `window_days` days."""


class LearningDataRepository(Protocol):
    """Persistence of learning records."""

    async def add(self, record: LearningDataRecord) -> str:
        """Persist a record and return its id."""

    async def exists_for_item(self, content_item_id: str, source_type: LearningSource) -> bool:
        """Whether a record of this source already exists for the item."""

    async def list_for_locale(
        self,
        locale: str,
        *,
        source_types: list[LearningSource] | None = None,
        limit: int = 50,
    ) -> list[LearningDataRecord]:
        """Records for a locale, highest performance score first."""


class FeedbackLogRepository(Protocol):
    """Audit trail of admin feedback."""

    async def add(self, entry: FeedbackLogEntry) -> None:
        """Append an audit entry."""


class CronLogRepository(Protocol):
    """Scheduled job summaries."""

    async def add(
        self,
        *,
        job_name: str,
        status: str,
        result_data: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        """Append a job log entry."""


class PerformanceAlertRepository(Protocol):
    """Tier-change alerts."""

    async def add_tier_change(self, change: TierChange, message: str) -> None:
        """Persist one tier-change alert."""
