"""
Unit tests for hero scoring and mover segmentation.
"""

import pytest

from models.growth_simulation import FCAggregate, EngineConfig, MoverSegment
from services.demand_forecast_service import forecast_demand
from services.hero_scoring_service import (
    build_portfolio_distribution,
    classify_segment,
    stability_ratio,
    inventory_health_score,
    score_family_code,
)


@pytest.fixture
def config():
    return EngineConfig()


def aggregate(code, velocity, margin_pct, on_hand=0, velocity_7d=None, hero=False):
    return FCAggregate(
        fc_code=code,
        fc_name=code,
        velocity=velocity,
        velocity_7d=velocity if velocity_7d is None else velocity_7d,
        margin_pct=margin_pct,
        on_hand_qty=on_hand,
        is_hero_manual=hero,
    )


@pytest.fixture
def portfolio():
    return [
        aggregate("SLOW", 0.2, 20),
        aggregate("MID", 2, 40),
        aggregate("FAST", 5, 55, on_hand=50),
    ]


def score(fc, portfolio, config, horizon_days=60):
    distribution = build_portfolio_distribution(portfolio)
    forecast = forecast_demand(fc, horizon_days, config)
    return score_family_code(fc, forecast, distribution, config)


class TestPortfolioDistribution:
    """Sorted bases with documented fallbacks."""

    def test_sorted_values(self, portfolio):
        distribution = build_portfolio_distribution(list(reversed(portfolio)))

        assert distribution.velocities == [0.2, 2, 5]
        assert distribution.margins == [20, 40, 55]
        assert distribution.velocity_min == 0.2
        assert distribution.velocity_max == 5

    def test_empty_fallbacks(self):
        distribution = build_portfolio_distribution([])

        assert distribution.velocity_min == 0
        assert distribution.velocity_max == 1
        assert distribution.margin_min == 0
        assert distribution.margin_max == 100


class TestClassifySegment:
    """Precedence: <0.5 slow; fast rules; slow rules; normal."""

    @pytest.mark.parametrize("velocity,percentile,expected", [
        (0.4, 99, MoverSegment.SLOW),
        (3, 70, MoverSegment.FAST),
        (1, 75, MoverSegment.FAST),
        (0.9, 75, MoverSegment.SLOW),
        (2, 30, MoverSegment.SLOW),
        (2, 50, MoverSegment.NORMAL),
        (5, 66.7, MoverSegment.NORMAL),
    ])
    def test_segments(self, velocity, percentile, expected, config):
        assert classify_segment(velocity, percentile, config) == expected


class TestSubScores:
    """Stability and inventory health components."""

    def test_stability_ratio(self):
        assert stability_ratio(4, 4) == 1
        assert stability_ratio(4, 3) == 0.75
        assert stability_ratio(4, 12) == 0
        assert stability_ratio(0, 3) == 0

    @pytest.mark.parametrize("doc,expected", [
        (30, 25),
        (60, 25),
        (90, 25),
        (12, 2.5),
        (0, 0),
        (100, 25 * 100 / 120),
        (500, 25),
    ])
    def test_inventory_health(self, doc, expected, config):
        assert inventory_health_score(doc, config) == pytest.approx(expected)


class TestScoreFamilyCode:
    """hero_score = round(velocity + margin + stability + inventory health)."""

    def test_full_breakdown(self, portfolio, config):
        fast = portfolio[2]

        result = score(fast, portfolio, config)

        assert result.velocity_score == 25
        assert result.margin_score == 25
        assert result.stability_score == 25
        # 50 on hand / 5 per day = 10 days → 10/120 * 25
        assert result.inventory_health_score == pytest.approx(25 * 10 / 120)
        assert result.hero_score == 77
        assert result.velocity_percentile == pytest.approx(200 / 3)
        assert result.segment == MoverSegment.NORMAL
        assert result.is_hero_calculated is False
        assert result.is_hero is False

    def test_calculated_hero(self, portfolio, config):
        healthy = aggregate("FAST", 5, 55, on_hand=200)
        portfolio[2] = healthy

        result = score(healthy, portfolio, config)

        assert result.hero_score == 100
        assert result.is_hero_calculated is True
        assert result.is_hero is True

    def test_low_margin_blocks_calculated_hero(self, config):
        portfolio = [
            aggregate("A", 1, 10),
            aggregate("B", 5, 35, on_hand=200),
        ]
        config = EngineConfig(hero_margin_threshold=40)

        result = score(portfolio[1], portfolio, config)

        assert result.hero_score == 100
        assert result.is_hero_calculated is False

    def test_manual_hero(self, portfolio, config):
        slow_hero = aggregate("SLOW", 0.2, 20, hero=True)
        portfolio[0] = slow_hero

        result = score(slow_hero, portfolio, config)

        assert result.is_hero_manual is True
        assert result.is_hero is True
        assert result.segment == MoverSegment.SLOW

    def test_score_in_range_and_order_independent(self, portfolio, config):
        forward = [score(fc, portfolio, config) for fc in portfolio]
        backward = [score(fc, list(reversed(portfolio)), config) for fc in portfolio]

        assert forward == backward
        assert all(0 <= s.hero_score <= 100 for s in forward)
