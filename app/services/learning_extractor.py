"""Turn high performers and admin feedback into reusable learning context."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from html import escape

from app.core.best_effort import run_best_effort
from app.core.redis import HighPerformerCache
from app.repositories.contracts import (
    ContentItemRepository,
    LearningDataRepository,
    PerformanceRecordRepository,
)
from app.repositories.records import (
    ContentItem,
    LearningDataRecord,
    LearningSource,
    PerformanceRecord,
)
from app.services.content_analysis import analyze_content, extract_excerpt
from app.services.locale_guidelines import get_locale_guideline
from app.services.performance_classifier import calculate_performance_score

logger = logging.getLogger(__name__)

CONTEXT_SOURCES = [
    LearningSource.HIGH_PERFORMER,
    LearningSource.MANUAL_EDIT,
    LearningSource.USER_FEEDBACK,
]
EXAMPLE_EXCERPT_CHARS = 500


@dataclass(slots=True)
class LearningContext:
    """Learning block for a generation prompt; empty when nothing qualifies."""

    learning_context: str = ""
    patterns: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.learning_context


@dataclass(slots=True)
class LearningRunResult:
    analyzed: int = 0
    new_high_performers: int = 0
    learned: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "analyzed": self.analyzed,
            "new_high_performers": self.new_high_performers,
            "learned": self.learned,
            "errors": list(self.errors),
        }


@dataclass(slots=True)
class PipelineStatus:
    last_run: str | None = None
    total_processed: int = 0
    total_high_performers: int = 0


def _same(value: str | None, other: str | None) -> bool:
    return (value or "").strip().lower() == (other or "").strip().lower()


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


def extract_common_patterns(records: list[LearningDataRecord]) -> list[str]:
    """Short observations about traits shared by the examples."""
    patterns: list[str] = []
    title_patterns = _unique([record.title_pattern for record in records])
    if title_patterns:
        patterns.append(f"Title Pattern: {', '.join(title_patterns)}")

    styles = _unique([record.writing_style_notes for record in records])
    if styles:
        patterns.append(f"Writing Style: {', '.join(styles)}")

    with_tables = sum(1 for record in records if (record.seo_patterns.get("table_count") or 0) > 0)
    if with_tables:
        patterns.append(f"Comparison tables appear in {with_tables} of {len(records)} examples")

    placements = Counter(
        placement
        for record in records
        for placement in record.seo_patterns.get("keyword_placement") or []
    )
    if placements:
        ordered = [placement for placement, _ in placements.most_common()]
        patterns.append(f"Keyword placement: {', '.join(ordered)}")

    cta_styles = Counter(
        record.seo_patterns["cta_style"] for record in records if record.seo_patterns.get("cta_style")
    )
    if cta_styles:
        patterns.append(f"CTA style: {cta_styles.most_common(1)[0][0]}")

    return patterns


def generate_recommendations(records: list[LearningDataRecord], locale: str | None) -> list[str]:
    """Imperative suggestions derived from the examples and the locale."""
    recommendations: list[str] = []
    if records:
        count = len(records)
        average_length = sum(record.seo_patterns.get("content_length") or 0 for record in records) / count
        if average_length > 0:
            recommendations.append(f"Target content length: ~{round(average_length)} characters")

        average_faq = round(sum(record.seo_patterns.get("faq_count") or 0 for record in records) / count)
        if average_faq > 0:
            recommendations.append(f"Include {average_faq} FAQ items")

        average_tables = round(sum(record.seo_patterns.get("table_count") or 0 for record in records) / count)
        if average_tables > 0:
            recommendations.append(f"Include at least {average_tables} comparison table(s)")

    locale_line = get_locale_guideline(locale).learning_recommendation
    if locale_line:
        recommendations.append(locale_line)
    return recommendations


def format_learning_context(
    records: list[LearningDataRecord],
    patterns: list[str],
    recommendations: list[str],
) -> str:
    """Serialize examples, patterns and recommendations as an XML-tagged block."""
    if not records:
        return ""

    sections: list[str] = []
    for index, record in enumerate(records, start=1):
        sections.append(
            "\n".join(
                [
                    f'  <high_performer index="{index}">',
                    f"    <performance_score>{record.performance_score}</performance_score>",
                    f"    <category>{escape(record.category or 'general')}</category>",
                    f"    <locale>{escape(record.locale or '')}</locale>",
                    f"    <source_type>{record.source_type.value}</source_type>",
                    "    <content_excerpt>",
                    escape(record.content_excerpt[:EXAMPLE_EXCERPT_CHARS]),
                    "    </content_excerpt>",
                    f"    <title_pattern>{escape(record.title_pattern or 'standard')}</title_pattern>",
                    f"    <writing_style>{escape(record.writing_style_notes or 'standard')}</writing_style>",
                    "  </high_performer>",
                ]
            )
        )

    lines = [
        "<learning_data>",
        "  <description>High-performing content patterns to study and adapt</description>",
        "  <instruction>Cite specific elements from these examples that you will incorporate into your content</instruction>",
        *sections,
    ]
    if patterns:
        lines.append("  <observed_patterns>")
        lines.extend(f"    - {escape(pattern)}" for pattern in patterns)
        lines.append("  </observed_patterns>")
    if recommendations:
        lines.append("  <recommendations>")
        lines.extend(f"    - {escape(recommendation)}" for recommendation in recommendations)
        lines.append("  </recommendations>")
    lines.append("</learning_data>")
    return "\n".join(lines)


class LearningDataExtractor:
    """Builds learning context for prompts and learns from new high performers.

    Candidates for a locale are stored learning records plus high performers
    that have not been analyzed yet. Same-category candidates are preferred;
    when fewer than `min_category_pool` exist, other categories in the same
    locale fill the remaining slots.
    """

    def __init__(
        self,
        *,
        content_items: ContentItemRepository,
        performance_records: PerformanceRecordRepository,
        learning_data: LearningDataRepository,
        cache: HighPerformerCache | None = None,
        min_category_pool: int = 3,
        top_k: int = 3,
        candidate_limit: int = 50,
    ) -> None:
        self.content_items = content_items
        self.performance_records = performance_records
        self.learning_data = learning_data
        self.cache = cache
        self.min_category_pool = min_category_pool
        self.top_k = top_k
        self.candidate_limit = candidate_limit

    async def build_learning_context(
        self,
        keyword: str,
        locale: str,
        category: str | None,
    ) -> LearningContext:
        """Learning context for one generation request. Never raises."""
        try:
            candidates = await self._load_candidates(locale)
        except Exception as e:
            logger.warning(
                "Learning context unavailable; continuing without it",
                extra={"keyword": keyword, "locale": locale, "category": category, "error": str(e)},
            )
            return LearningContext()

        selected = self._select(candidates, category)
        if not selected:
            return LearningContext()

        patterns = extract_common_patterns(selected)
        recommendations = generate_recommendations(selected, locale)
        logger.info(
            "Learning context built",
            extra={"keyword": keyword, "locale": locale, "category": category, "examples": len(selected)},
        )
        return LearningContext(
            learning_context=format_learning_context(selected, patterns, recommendations),
            patterns=patterns,
            recommendations=recommendations,
        )

    def _select(self, candidates: list[LearningDataRecord], category: str | None) -> list[LearningDataRecord]:
        def by_score(record: LearningDataRecord) -> int:
            return record.performance_score

        same_category = sorted(
            (record for record in candidates if _same(record.category, category)),
            key=by_score,
            reverse=True,
        )
        if len(same_category) >= self.min_category_pool:
            return same_category[: self.top_k]

        cross_category = sorted(
            (record for record in candidates if not _same(record.category, category)),
            key=by_score,
            reverse=True,
        )
        return (same_category + cross_category)[: self.top_k]

    async def _load_candidates(self, locale: str) -> list[LearningDataRecord]:
        stored = await self.learning_data.list_for_locale(
            locale,
            source_types=CONTEXT_SOURCES,
            limit=self.candidate_limit,
        )
        covered = {record.content_item_id for record in stored if record.content_item_id}

        pending = await self._pending_high_performers(exclude=covered)
        analyzed = [
            self._record_from_item(item, record)
            for item, record in pending
            if _same(item.locale, locale)
        ]
        return stored + analyzed

    async def _pending_high_performers(
        self,
        *,
        exclude: set[str],
    ) -> list[tuple[ContentItem, PerformanceRecord]]:
        """Best record per high-performing item with content, skipping excluded ids."""
        records = await self.performance_records.list_high_performers(limit=self.candidate_limit)
        best: dict[str, PerformanceRecord] = {}
        for record in records:
            if record.content_item_id in exclude or record.content_item_id in best:
                continue
            best[record.content_item_id] = record
        if not best:
            return []

        items = await self.content_items.get_many(list(best))
        return [
            (items[item_id], record)
            for item_id, record in best.items()
            if item_id in items and items[item_id].content
        ]

    @staticmethod
    def _record_from_item(item: ContentItem, record: PerformanceRecord) -> LearningDataRecord:
        content = item.content or ""
        analysis = analyze_content(
            item.title or "",
            content,
            locale=item.locale,
            keyword=item.target_keyword or item.title or "",
        )
        return LearningDataRecord(
            source_type=LearningSource.HIGH_PERFORMER,
            content_item_id=item.id,
            locale=item.locale,
            category=item.category,
            content_excerpt=extract_excerpt(content),
            title_pattern=analysis.title_pattern,
            writing_style_notes=analysis.writing_style,
            seo_patterns={**analysis.seo_patterns, "key_insights": analysis.key_insights},
            performance_score=calculate_performance_score(
                ctr=record.ctr,
                clicks=record.clicks,
                position=record.position,
                impressions=record.impressions,
            ),
        )

    async def learn_from_high_performers(self) -> LearningRunResult:
        """Analyze high performers without a stored learning record and persist them."""
        result = LearningRunResult()
        try:
            records = await self.performance_records.list_high_performers(limit=self.candidate_limit)
        except Exception as e:
            logger.warning("Learning run failed to load high performers", extra={"error": str(e)})
            result.errors.append(f"Pipeline error: {e}")
            return result

        best: dict[str, PerformanceRecord] = {}
        for record in records:
            best.setdefault(record.content_item_id, record)
        result.analyzed = len(best)

        processed: set[str] = set()
        if self.cache is not None:
            processed = await run_best_effort(
                self.cache.processed_ids(),
                operation_name="learning_cache_processed_ids",
            ) or set()

        try:
            items = await self.content_items.get_many(list(best))
        except Exception as e:
            logger.warning("Learning run failed to load content items", extra={"error": str(e)})
            result.errors.append(f"Pipeline error: {e}")
            return result

        for content_item_id, record in best.items():
            if content_item_id in processed:
                continue
            try:
                if await self.learning_data.exists_for_item(content_item_id, LearningSource.HIGH_PERFORMER):
                    await self._mark_processed(content_item_id)
                    continue

                result.new_high_performers += 1
                item = items.get(content_item_id)
                if item is None or not item.content:
                    result.errors.append(f"Content item {content_item_id}: no content to analyze")
                    continue

                learning_id = await self.learning_data.add(self._record_from_item(item, record))
                result.learned += 1
                await self._mark_processed(content_item_id)
                logger.info(
                    "Learned from high performer",
                    extra={"content_item_id": content_item_id, "learning_data_id": learning_id},
                )
            except Exception as e:
                logger.warning(
                    "Failed to learn from high performer",
                    extra={"content_item_id": content_item_id, "error": str(e)},
                )
                result.errors.append(f"Content item {content_item_id}: {e}")

        if self.cache is not None:
            await run_best_effort(
                self.cache.set_high_performers(list(best)),
                operation_name="learning_cache_high_performers",
            )
            await run_best_effort(self.cache.record_run(), operation_name="learning_cache_last_run")

        logger.info("Learning run complete", extra=result.as_dict())
        return result

    async def _mark_processed(self, content_item_id: str) -> None:
        if self.cache is None:
            return
        await run_best_effort(
            self.cache.mark_processed(content_item_id),
            operation_name="learning_cache_mark_processed",
            log_context={"content_item_id": content_item_id},
        )

    async def pipeline_status(self) -> PipelineStatus:
        """Last learning run and cached counters; zeros when the cache is unavailable."""
        if self.cache is None:
            return PipelineStatus()
        last_run = await run_best_effort(self.cache.last_run(), operation_name="learning_cache_last_run")
        processed = await run_best_effort(self.cache.processed_ids(), operation_name="learning_cache_processed_ids")
        high_performers = await run_best_effort(
            self.cache.get_high_performers(),
            operation_name="learning_cache_high_performers",
        )
        return PipelineStatus(
            last_run=last_run,
            total_processed=len(processed or ()),
            total_high_performers=len(high_performers or ()),
        )
