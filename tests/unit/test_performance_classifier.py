"""Unit tests for tier classification, high-performer gating and scoring."""

from __future__ import annotations

import pytest

from app.services.performance_classifier import (
    HighPerformerCriteria,
    PerformanceTier,
    TierThresholds,
    calculate_performance_score,
    classify_tier,
    is_high_performer,
    tier_rank,
)


@pytest.mark.parametrize(
    ("ctr", "position", "expected"),
    [
        (0.06, 5.0, PerformanceTier.TOP),
        (0.05, 5.0, PerformanceTier.MID),
        (0.10, 10.0, PerformanceTier.MID),
        (0.01, 25.0, PerformanceTier.MID),
        (0.03, 40.0, PerformanceTier.MID),
        (0.02, 30.0, PerformanceTier.MID),
        (0.01, 35.0, PerformanceTier.LOW),
        (0.019, 30.1, PerformanceTier.LOW),
    ],
)
def test_classify_tier_boundaries(ctr: float, position: float, expected: PerformanceTier) -> None:
    assert classify_tier(ctr, position) is expected


def test_classify_tier_uses_custom_thresholds() -> None:
    strict = TierThresholds(top_ctr_min=0.2, top_position_max=3.0)

    assert classify_tier(0.1, 2.0) is PerformanceTier.TOP
    assert classify_tier(0.1, 2.0, strict) is PerformanceTier.LOW


def test_high_performer_requires_every_minimum() -> None:
    assert is_high_performer(0.03, 50, 20.0, 500) is True
    assert is_high_performer(0.029, 50, 20.0, 500) is False
    assert is_high_performer(0.03, 49, 20.0, 500) is False
    assert is_high_performer(0.03, 50, 20.1, 500) is False
    assert is_high_performer(0.03, 50, 20.0, 499) is False


def test_high_ctr_with_few_clicks_is_not_a_high_performer() -> None:
    assert classify_tier(0.10, 5.0) is PerformanceTier.TOP
    assert is_high_performer(0.10, 10, 5.0, 100) is False


def test_high_performer_criteria_are_configurable() -> None:
    relaxed = HighPerformerCriteria(min_clicks=5, min_impressions=50)

    assert is_high_performer(0.10, 10, 5.0, 100, relaxed) is True


def test_performance_score_weights_and_caps() -> None:
    assert calculate_performance_score(ctr=0.05, clicks=100, position=5.0, impressions=5000) == 70
    assert calculate_performance_score(ctr=0.1, clicks=1000, position=0.0, impressions=20000) == 100
    assert calculate_performance_score(ctr=0.0, clicks=0, position=30.0, impressions=0) == 0


def test_tier_rank_orders_low_mid_top() -> None:
    assert tier_rank(PerformanceTier.LOW) < tier_rank(PerformanceTier.MID) < tier_rank(PerformanceTier.TOP)
