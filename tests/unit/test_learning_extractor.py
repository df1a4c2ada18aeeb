"""Unit tests for learning context assembly and the high-performer learning run."""

from __future__ import annotations

from datetime import date

import pytest

from app.repositories.records import LearningDataRecord, LearningSource, PerformanceRecord
from app.services.learning_extractor import (
    LearningDataExtractor,
    extract_common_patterns,
    format_learning_context,
    generate_recommendations,
)
from app.services.performance_classifier import PerformanceTier


class _FakeCache:
    def __init__(self) -> None:
        self.processed: set[str] = set()
        self.high_performers: list[str] = []
        self.runs = 0
        self.fail_writes = False

    async def processed_ids(self) -> set[str]:
        return set(self.processed)

    async def mark_processed(self, content_item_id: str) -> None:
        if self.fail_writes:
            raise ConnectionError("redis down")
        self.processed.add(content_item_id)

    async def set_high_performers(self, content_item_ids: list[str]) -> None:
        if self.fail_writes:
            raise ConnectionError("redis down")
        self.high_performers = list(content_item_ids)

    async def get_high_performers(self) -> list[str]:
        return list(self.high_performers)

    async def record_run(self) -> None:
        if self.fail_writes:
            raise ConnectionError("redis down")
        self.runs += 1

    async def last_run(self) -> str | None:
        return "2026-10-18T00:00:00+00:00" if self.runs else None


def _stored(
    item_id: str,
    *,
    category: str,
    score: int,
    locale: str = "en",
    source: LearningSource = LearningSource.HIGH_PERFORMER,
    seo: dict | None = None,
) -> LearningDataRecord:
    return LearningDataRecord(
        source_type=source,
        content_item_id=item_id,
        locale=locale,
        category=category,
        content_excerpt=f"Excerpt for {item_id}",
        title_pattern="keyword-first",
        writing_style_notes="uses-lists",
        seo_patterns=seo or {"content_length": 2000, "faq_count": 4, "table_count": 1, "cta_style": "messenger-focused"},
        performance_score=score,
    )


def _high_performer(item_id: str, *, clicks: int = 120) -> PerformanceRecord:
    return PerformanceRecord(
        content_item_id=item_id,
        impressions=2000,
        clicks=clicks,
        ctr=clicks / 2000,
        position=6.0,
        date_range_start=date(2026, 9, 1),
        date_range_end=date(2026, 9, 29),
        performance_tier=PerformanceTier.TOP,
        is_high_performer=True,
    )


def _extractor(content_items, performance_records, learning_data, cache=None) -> LearningDataExtractor:
    return LearningDataExtractor(
        content_items=content_items,
        performance_records=performance_records,
        learning_data=learning_data,
        cache=cache,
    )


@pytest.mark.asyncio
async def test_context_is_empty_without_candidates(content_items, performance_records, learning_data) -> None:
    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    assert context.is_empty
    assert context.patterns == []
    assert context.recommendations == []


@pytest.mark.asyncio
async def test_context_uses_only_same_category_when_pool_is_large_enough(
    content_items, performance_records, learning_data
) -> None:
    learning_data.records = [
        _stored("ps-1", category="plastic-surgery", score=70),
        _stored("ps-2", category="plastic-surgery", score=60),
        _stored("ps-3", category="plastic-surgery", score=50),
        _stored("ps-4", category="plastic-surgery", score=40),
        _stored("dental-1", category="dental", score=95),
    ]

    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    assert "Excerpt for ps-1" in context.learning_context
    assert "Excerpt for ps-3" in context.learning_context
    assert "Excerpt for ps-4" not in context.learning_context
    assert "Excerpt for dental-1" not in context.learning_context


@pytest.mark.asyncio
async def test_context_falls_back_to_other_categories_when_pool_is_small(
    content_items, performance_records, learning_data
) -> None:
    learning_data.records = [
        _stored("ps-1", category="plastic-surgery", score=40),
        _stored("dental-1", category="dental", score=95),
        _stored("derm-1", category="dermatology", score=80),
        _stored("derm-2", category="dermatology", score=10),
    ]

    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    text = context.learning_context
    assert text.index("Excerpt for ps-1") < text.index("Excerpt for dental-1") < text.index("Excerpt for derm-1")
    assert "Excerpt for derm-2" not in text


@pytest.mark.asyncio
async def test_context_ignores_other_locales(content_items, performance_records, learning_data) -> None:
    learning_data.records = [_stored("ko-1", category="plastic-surgery", score=90, locale="ko")]

    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    assert context.is_empty


@pytest.mark.asyncio
async def test_context_includes_unanalyzed_high_performers(
    content_items, performance_records, learning_data, make_item
) -> None:
    content_items.add(make_item("hp-1"), make_item("hp-ko", locale="ko"))
    await performance_records.upsert(_high_performer("hp-1"))
    await performance_records.upsert(_high_performer("hp-ko"))

    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    assert context.learning_context.startswith("<learning_data>")
    assert context.learning_context.count("<high_performer index=") == 1
    assert "<source_type>high_performer</source_type>" in context.learning_context
    assert any(pattern.startswith("Title Pattern:") for pattern in context.patterns)
    assert learning_data.records == []


@pytest.mark.asyncio
async def test_context_failure_returns_empty_context(content_items, performance_records, learning_data) -> None:
    learning_data.error = RuntimeError("database unavailable")

    context = await _extractor(content_items, performance_records, learning_data).build_learning_context(
        "rhinoplasty korea", "en", "plastic-surgery"
    )

    assert context.is_empty


def test_common_patterns_summarize_examples() -> None:
    records = [
        _stored("a", category="dental", score=50, seo={"table_count": 2, "keyword_placement": ["intro", "headings"]}),
        _stored("b", category="dental", score=40, seo={"table_count": 0, "keyword_placement": ["intro"]}),
    ]

    patterns = extract_common_patterns(records)

    assert "Title Pattern: keyword-first" in patterns
    assert "Writing Style: uses-lists" in patterns
    assert "Comparison tables appear in 1 of 2 examples" in patterns
    assert "Keyword placement: intro, headings" in patterns


def test_recommendations_average_examples_and_add_locale_line() -> None:
    records = [
        _stored("a", category="dental", score=50, seo={"content_length": 3000, "faq_count": 5, "table_count": 1}),
        _stored("b", category="dental", score=40, seo={"content_length": 1000, "faq_count": 3, "table_count": 1}),
    ]

    recommendations = generate_recommendations(records, "ja")

    assert recommendations == [
        "Target content length: ~2000 characters",
        "Include 4 FAQ items",
        "Include at least 1 comparison table(s)",
        "Use 敬語 (polite form) throughout",
    ]


def test_format_learning_context_escapes_markup() -> None:
    record = _stored("a", category="dental", score=50)
    record.content_excerpt = "Costs < $500 & up"

    text = format_learning_context([record], ["CTA style: messenger-focused"], [])

    assert "Costs &lt; $500 &amp; up" in text
    assert "<observed_patterns>" in text
    assert "<recommendations>" not in text
    assert format_learning_context([], [], []) == ""


@pytest.mark.asyncio
async def test_learning_run_stores_new_high_performers_once(
    content_items, performance_records, learning_data, make_item
) -> None:
    content_items.add(make_item("hp-1"), make_item("hp-2", content=None))
    await performance_records.upsert(_high_performer("hp-1", clicks=300))
    await performance_records.upsert(_high_performer("hp-2", clicks=200))
    cache = _FakeCache()
    extractor = _extractor(content_items, performance_records, learning_data, cache)

    first = await extractor.learn_from_high_performers()

    assert first.analyzed == 2
    assert first.new_high_performers == 2
    assert first.learned == 1
    assert len(first.errors) == 1
    assert "hp-2" in first.errors[0]
    (stored,) = learning_data.records
    assert stored.content_item_id == "hp-1"
    assert stored.source_type is LearningSource.HIGH_PERFORMER
    assert stored.performance_score > 0
    assert "key_insights" in stored.seo_patterns
    assert cache.processed == {"hp-1"}
    assert cache.high_performers == ["hp-1", "hp-2"]

    second = await extractor.learn_from_high_performers()

    assert second.learned == 0
    assert len(learning_data.records) == 1


@pytest.mark.asyncio
async def test_learning_run_without_cache_skips_already_learned_items(
    content_items, performance_records, learning_data, make_item
) -> None:
    content_items.add(make_item("hp-1"))
    await performance_records.upsert(_high_performer("hp-1"))
    learning_data.records = [_stored("hp-1", category="plastic-surgery", score=70)]

    result = await _extractor(content_items, performance_records, learning_data).learn_from_high_performers()

    assert result.analyzed == 1
    assert result.new_high_performers == 0
    assert result.learned == 0


@pytest.mark.asyncio
async def test_learning_run_survives_cache_write_failures(
    content_items, performance_records, learning_data, make_item
) -> None:
    content_items.add(make_item("hp-1"))
    await performance_records.upsert(_high_performer("hp-1"))
    cache = _FakeCache()
    cache.fail_writes = True

    result = await _extractor(content_items, performance_records, learning_data, cache).learn_from_high_performers()

    assert result.learned == 1
    assert result.errors == []


@pytest.mark.asyncio
async def test_pipeline_status_reports_cache_counters(content_items, performance_records, learning_data) -> None:
    extractor = _extractor(content_items, performance_records, learning_data)
    assert (await extractor.pipeline_status()).total_processed == 0

    cache = _FakeCache()
    cache.processed = {"a", "b"}
    cache.high_performers = ["a", "b", "c"]
    cache.runs = 1
    status = await _extractor(content_items, performance_records, learning_data, cache).pipeline_status()

    assert status.last_run == "2026-10-18T00:00:00+00:00"
    assert status.total_processed == 2
    assert status.total_high_performers == 3
