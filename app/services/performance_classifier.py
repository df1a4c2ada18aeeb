"""Pure classification of search performance into tiers and high-performer flags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PerformanceTier(str, Enum):
    """Coarse search-performance bucket."""

    TOP = "top"
    MID = "mid"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class TierThresholds:
    """Boundaries for tier classification.

    Top uses strict inequalities; mid ranges are inclusive on both ends.
    """

    top_ctr_min: float = 0.05
    top_position_max: float = 10.0
    mid_ctr_min: float = 0.02
    mid_ctr_max: float = 0.05
    mid_position_min: float = 10.0
    mid_position_max: float = 30.0


@dataclass(frozen=True, slots=True)
class HighPerformerCriteria:
    """Conjunctive volume + quality gate, independent of tier."""

    min_ctr: float = 0.03
    min_clicks: int = 50
    max_position: float = 20.0
    min_impressions: int = 500


DEFAULT_TIER_THRESHOLDS = TierThresholds()
DEFAULT_HIGH_PERFORMER_CRITERIA = HighPerformerCriteria()


def classify_tier(
    ctr: float,
    position: float,
    thresholds: TierThresholds = DEFAULT_TIER_THRESHOLDS,
) -> PerformanceTier:
    """Classify (ctr, position) into top/mid/low. Top is checked first."""
    if ctr > thresholds.top_ctr_min and position < thresholds.top_position_max:
        return PerformanceTier.TOP

    in_mid_ctr = thresholds.mid_ctr_min <= ctr <= thresholds.mid_ctr_max
    in_mid_position = thresholds.mid_position_min <= position <= thresholds.mid_position_max
    if in_mid_ctr or in_mid_position:
        return PerformanceTier.MID

    return PerformanceTier.LOW


def is_high_performer(
    ctr: float,
    clicks: int,
    position: float,
    impressions: int,
    criteria: HighPerformerCriteria = DEFAULT_HIGH_PERFORMER_CRITERIA,
) -> bool:
    """True only when every volume and quality minimum is met."""
    return (
        ctr >= criteria.min_ctr
        and clicks >= criteria.min_clicks
        and position <= criteria.max_position
        and impressions >= criteria.min_impressions
    )


def calculate_performance_score(
    *,
    ctr: float,
    clicks: int,
    position: float,
    impressions: int,
) -> int:
    """Score 0-100 weighting CTR (30), clicks (25), position (25) and impressions (20)."""
    ctr_score = min(ctr * 1000, 30.0)
    click_score = min(clicks / 10, 25.0)
    position_score = max(0.0, 25.0 - position)
    impression_score = min(impressions / 500, 20.0)
    return round(ctr_score + click_score + position_score + impression_score)


def tier_rank(tier: PerformanceTier) -> int:
    """Ordinal for comparing tiers (higher is better)."""
    return {PerformanceTier.LOW: 0, PerformanceTier.MID: 1, PerformanceTier.TOP: 2}[tier]
