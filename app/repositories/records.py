"""Plain records exchanged between services and repositories."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from app.services.performance_classifier import PerformanceTier, tier_rank


class LearningSource(str, Enum):
    """Where a learning record came from."""

    HIGH_PERFORMER = "high_performer"
    USER_FEEDBACK = "user_feedback"
    MANUAL_EDIT = "manual_edit"


class FeedbackType(str, Enum):
    """Admin feedback signal on a single article."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    EDIT = "edit"


@dataclass(slots=True)
class ContentItem:
    """A published article as seen by the learning loop."""

    id: str
    slug: str
    locale: str
    category: str | None = None
    title: str | None = None
    target_keyword: str | None = None
    excerpt: str | None = None
    content: str | None = None
    published_at: datetime | None = None

    def url(self, site_base_url: str) -> str:
        """Public article URL: {site}/{locale}/blog/{slug}."""
        return f"{site_base_url.rstrip('/')}/{self.locale}/blog/{self.slug}"


@dataclass(slots=True)
class PerformanceRecord:
    """Search performance of one content item over one date range."""

    content_item_id: str
    impressions: int
    clicks: int
    ctr: float
    position: float
    date_range_start: date
    date_range_end: date
    performance_tier: PerformanceTier
    is_high_performer: bool
    id: str | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, date, date]:
        return (self.content_item_id, self.date_range_start, self.date_range_end)


@dataclass(slots=True)
class LearningDataRecord:
    """Reusable writing/SEO knowledge injected into future prompts."""

    source_type: LearningSource
    content_item_id: str | None
    locale: str | None
    category: str | None
    content_excerpt: str = ""
    title_pattern: str = ""
    writing_style_notes: str = ""
    seo_patterns: dict[str, Any] = field(default_factory=dict)
    performance_score: int = 0
    feedback_type: FeedbackType | None = None
    created_by: str | None = None
    id: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class FeedbackLogEntry:
    """Audit entry for an admin feedback action."""

    admin_id: str
    content_item_id: str
    feedback_type: FeedbackType
    notes: str | None = None
    learning_data_id: str | None = None


@dataclass(slots=True)
class TierChange:
    """Tier movement between an item's two most recent measurements."""

    content_item_id: str
    previous_tier: PerformanceTier
    current_tier: PerformanceTier
    clicks: int
    impressions: int
    ctr: float
    position: float
    performance_score: int

    @property
    def is_upgrade(self) -> bool:
        return tier_rank(self.current_tier) > tier_rank(self.previous_tier)
