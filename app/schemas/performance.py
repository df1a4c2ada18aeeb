"""Performance summary and collection schemas."""

from datetime import date

from pydantic import BaseModel


class PerformanceSummaryResponse(BaseModel):
    total_records: int
    top_tier: int
    mid_tier: int
    low_tier: int
    high_performers: int
    total_clicks: int
    total_impressions: int
    avg_ctr: float
    avg_position: float


class PerformanceRecordResponse(BaseModel):
    content_item_id: str
    impressions: int
    clicks: int
    ctr: float
    position: float
    date_range_start: date
    date_range_end: date
    performance_tier: str
    is_high_performer: bool


class CollectionResponse(BaseModel):
    success: bool
    pages_processed: int
    new_records: int
    updated_records: int
    high_performers: int
    errors: list[str]


class LearningRunResponse(BaseModel):
    analyzed: int
    new_high_performers: int
    learned: int
    errors: list[str]


class DailyJobResponse(BaseModel):
    success: bool
    collection: CollectionResponse
    learning_pipeline: LearningRunResponse | None = None
    tier_alerts: int = 0
    errors: list[str] = []
