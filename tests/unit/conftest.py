"""In-memory collaborators shared by the learning-loop unit tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from app.integrations.search_console import PagePerformance, SearchPerformanceRow
from app.repositories.records import (
    ContentItem,
    FeedbackLogEntry,
    LearningDataRecord,
    LearningSource,
    PerformanceRecord,
    TierChange,
)


class FakeContentItems:
    def __init__(self, items: list[ContentItem] | None = None) -> None:
        self.items: dict[str, ContentItem] = {item.id: item for item in items or []}
        self.error: Exception | None = None

    def add(self, *items: ContentItem) -> None:
        for item in items:
            self.items[item.id] = item

    async def list_published(self) -> list[ContentItem]:
        if self.error is not None:
            raise self.error
        return list(self.items.values())

    async def get(self, content_item_id: str) -> ContentItem | None:
        if self.error is not None:
            raise self.error
        return self.items.get(content_item_id)

    async def get_many(self, content_item_ids: list[str]) -> dict[str, ContentItem]:
        if self.error is not None:
            raise self.error
        return {item_id: self.items[item_id] for item_id in content_item_ids if item_id in self.items}


class FakePerformanceRecords:
    def __init__(self) -> None:
        self.records: dict[tuple[str, date, date], PerformanceRecord] = {}
        self.failing_ids: set[str] = set()
        self.upsert_calls = 0

    async def upsert(self, record: PerformanceRecord) -> bool:
        self.upsert_calls += 1
        if record.content_item_id in self.failing_ids:
            raise RuntimeError("write failed")
        inserted = record.key not in self.records
        self.records[record.key] = record
        return inserted

    async def list_in_range(self, start: date, end: date) -> list[PerformanceRecord]:
        return [
            record
            for record in self.records.values()
            if record.date_range_start >= start and record.date_range_end <= end
        ]

    async def list_high_performers(self, *, limit: int) -> list[PerformanceRecord]:
        rows = [record for record in self.records.values() if record.is_high_performer]
        rows.sort(key=lambda record: record.clicks, reverse=True)
        return rows[:limit]

    async def latest_two_per_item(self, window_days: int) -> dict[str, list[PerformanceRecord]]:
        grouped: dict[str, list[PerformanceRecord]] = {}
        for record in self.records.values():
            if (record.date_range_end - record.date_range_start).days != window_days:
                continue
            grouped.setdefault(record.content_item_id, []).append(record)
        return {
            item_id: sorted(rows, key=lambda record: record.date_range_end, reverse=True)[:2]
            for item_id, rows in grouped.items()
        }


class FakeLearningData:
    def __init__(self) -> None:
        self.records: list[LearningDataRecord] = []
        self.error: Exception | None = None

    async def add(self, record: LearningDataRecord) -> str:
        if self.error is not None:
            raise self.error
        record.id = f"learning_{len(self.records) + 1}"
        self.records.append(record)
        return record.id

    async def exists_for_item(self, content_item_id: str, source_type: LearningSource) -> bool:
        return any(
            record.content_item_id == content_item_id and record.source_type == source_type
            for record in self.records
        )

    async def list_for_locale(
        self,
        locale: str,
        *,
        source_types: list[LearningSource] | None = None,
        limit: int = 50,
    ) -> list[LearningDataRecord]:
        if self.error is not None:
            raise self.error
        rows = [
            record
            for record in self.records
            if record.locale == locale and (source_types is None or record.source_type in source_types)
        ]
        rows.sort(key=lambda record: record.performance_score, reverse=True)
        return rows[:limit]


class FakeFeedbackLogs:
    def __init__(self) -> None:
        self.entries: list[FeedbackLogEntry] = []
        self.error: Exception | None = None

    async def add(self, entry: FeedbackLogEntry) -> None:
        if self.error is not None:
            raise self.error
        self.entries.append(entry)


class FakeCronLogs:
    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    async def add(
        self,
        *,
        job_name: str,
        status: str,
        result_data: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        self.entries.append(
            {
                "job_name": job_name,
                "status": status,
                "result_data": result_data,
                "error_message": error_message,
            }
        )


class FakeAlerts:
    def __init__(self) -> None:
        self.alerts: list[tuple[TierChange, str]] = []
        self.error: Exception | None = None

    async def add_tier_change(self, change: TierChange, message: str) -> None:
        if self.error is not None:
            raise self.error
        self.alerts.append((change, message))


class FakeMetricsSource:
    """Stands in for SearchConsoleClient: async context manager plus fetch methods."""

    def __init__(
        self,
        rows: list[SearchPerformanceRow] | None = None,
        pages: dict[str, PagePerformance] | None = None,
    ) -> None:
        self.rows = rows or []
        self.pages = pages or {}
        self.error: Exception | None = None
        self.page_errors: dict[str, Exception] = {}
        self.requested_pages: list[str] = []
        self.entered = 0

    async def __aenter__(self) -> "FakeMetricsSource":
        self.entered += 1
        return self

    async def __aexit__(self, *args: Any) -> None:
        return None

    async def fetch_all_pages_performance(
        self,
        start_date: date,
        end_date: date,
        *,
        row_limit: int = 1000,
    ) -> list[SearchPerformanceRow]:
        if self.error is not None:
            raise self.error
        return list(self.rows)

    async def fetch_performance_for_single_page(
        self,
        page_url: str,
        start_date: date,
        end_date: date,
    ) -> PagePerformance | None:
        self.requested_pages.append(page_url)
        if page_url in self.page_errors:
            raise self.page_errors[page_url]
        return self.pages.get(page_url)


ARTICLE_BODY = """# Rhinoplasty in Korea: Complete Guide 2026

Rhinoplasty in Korea is popular with international patients.

## Cost Comparison

| Clinic | Price |
| --- | --- |
| A | $3,000 |
| B | $4,500 |

## Recovery

### Week 1

Swelling peaks in the first days.

## FAQ

### How long is recovery?

About two weeks.

### Is it safe?

Choose an accredited clinic.

Contact us on WhatsApp for a free consultation.
"""


@pytest.fixture
def make_item() -> Callable[..., ContentItem]:
    def _make(
        item_id: str,
        *,
        slug: str | None = None,
        locale: str = "en",
        category: str | None = "plastic-surgery",
        title: str | None = "Rhinoplasty in Korea: Complete Guide 2026",
        target_keyword: str | None = "rhinoplasty korea",
        content: str | None = ARTICLE_BODY,
    ) -> ContentItem:
        return ContentItem(
            id=item_id,
            slug=slug or f"post-{item_id}",
            locale=locale,
            category=category,
            title=title,
            target_keyword=target_keyword,
            content=content,
        )

    return _make


@pytest.fixture
def content_items() -> FakeContentItems:
    return FakeContentItems()


@pytest.fixture
def performance_records() -> FakePerformanceRecords:
    return FakePerformanceRecords()


@pytest.fixture
def learning_data() -> FakeLearningData:
    return FakeLearningData()


@pytest.fixture
def feedback_logs() -> FakeFeedbackLogs:
    return FakeFeedbackLogs()


@pytest.fixture
def cron_logs() -> FakeCronLogs:
    return FakeCronLogs()


@pytest.fixture
def alerts() -> FakeAlerts:
    return FakeAlerts()


@pytest.fixture
def metrics_source() -> FakeMetricsSource:
    return FakeMetricsSource()
