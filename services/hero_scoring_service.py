"""
Hero scoring and mover segmentation.

Scores each family code 0-100 from four 25-point components
(velocity, margin, stability, inventory health) against the whole
portfolio, then classifies hero status and mover speed.

The portfolio distribution is built from every fashion FC before
any FC is scored, so results do not depend on iteration order.
"""

from models.growth_simulation import (
    FCAggregate,
    DemandForecast,
    EngineConfig,
    HeroScore,
    MoverSegment,
    PortfolioDistribution,
)
from utils.math_utils import clamp, percentile_rank, round_half_up, scale_to_25


def build_portfolio_distribution(aggregates: list[FCAggregate]) -> PortfolioDistribution:
    """Sorted velocity and margin % values across all family codes."""
    return PortfolioDistribution(
        velocities=sorted(fc.velocity for fc in aggregates),
        margins=sorted(fc.margin_pct for fc in aggregates),
    )


def classify_segment(velocity: float, velocity_percentile: float, config: EngineConfig) -> MoverSegment:
    """
    Classify mover speed.

    Precedence:
        velocity < 0.5                        → slow
        velocity >= 3 and percentile >= 70    → fast
        percentile >= 70 and velocity >= 1    → fast
        percentile <= 30 or velocity < 1      → slow
        otherwise                             → normal
    """
    if velocity < config.slow_velocity_floor:
        return MoverSegment.SLOW
    if velocity >= config.fast_velocity_min and velocity_percentile >= config.fast_mover_percentile:
        return MoverSegment.FAST
    if velocity_percentile >= config.fast_mover_percentile and velocity >= config.normal_velocity_min:
        return MoverSegment.FAST
    if velocity_percentile <= config.slow_mover_percentile or velocity < config.normal_velocity_min:
        return MoverSegment.SLOW
    return MoverSegment.NORMAL


def stability_ratio(velocity: float, velocity_7d: float) -> float:
    """1 - |v7 - v| / v, clamped to [0, 1]; 0 without long-window velocity."""
    if velocity <= 0:
        return 0.0
    return clamp(1 - abs(velocity_7d - velocity) / velocity, 0, 1)


def inventory_health_score(days_of_cover: float, config: EngineConfig) -> float:
    """Full 25 points inside the healthy DOC band, else scaled on [0, 120]."""
    if config.healthy_doc_min <= days_of_cover <= config.healthy_doc_max:
        return 25.0
    ceiling = config.inventory_doc_ceiling
    return scale_to_25(clamp(days_of_cover, 0, ceiling), 0, ceiling)


def score_family_code(
    aggregate: FCAggregate,
    forecast: DemandForecast,
    distribution: PortfolioDistribution,
    config: EngineConfig,
) -> HeroScore:
    """
    Score one family code and classify it.

    Hero rule:
        calculated hero = hero_score >= 80 and margin_pct >= 40
        hero = manual hero or calculated hero
    """
    velocity_score = scale_to_25(aggregate.velocity, distribution.velocity_min, distribution.velocity_max)
    margin_score = scale_to_25(aggregate.margin_pct, distribution.margin_min, distribution.margin_max)
    stability_score = scale_to_25(stability_ratio(aggregate.velocity, aggregate.velocity_7d), 0, 1)
    health_score = inventory_health_score(forecast.days_of_cover_current, config)

    hero_score = round_half_up(velocity_score + margin_score + stability_score + health_score)
    velocity_percentile = percentile_rank(aggregate.velocity, distribution.velocities)

    is_hero_calculated = (
        hero_score >= config.hero_score_threshold
        and aggregate.margin_pct >= config.hero_margin_threshold
    )

    return HeroScore(
        velocity_score=velocity_score,
        margin_score=margin_score,
        stability_score=stability_score,
        inventory_health_score=health_score,
        hero_score=hero_score,
        velocity_percentile=velocity_percentile,
        is_hero_manual=aggregate.is_hero_manual,
        is_hero_calculated=is_hero_calculated,
        is_hero=aggregate.is_hero_manual or is_hero_calculated,
        segment=classify_segment(aggregate.velocity, velocity_percentile, config),
    )
