"""
Production planning.

Turns each family code's forecast into a production quantity through
a fixed sequence of tiers. Every tier takes an FCResult and returns a
new one; later tiers may override earlier ones.

Tiers (in order):
    1. Target days of cover (hero / non-hero, capped for slow heroes)
    2. Required supply and raw quantity
    3. Slow-mover gate (non-hero slow movers get nothing)
    4. Cash-recovery cap (post-production DOC above 120 → cut to 90)
    5. Financial projection
"""

from dataclasses import dataclass
from typing import Callable

from models.growth_simulation import (
    FCAggregate,
    DemandForecast,
    HeroScore,
    FCResult,
    MoverSegment,
    SimulationParams,
    EngineConfig,
)
from utils.math_utils import round_half_up, safe_divide


@dataclass(frozen=True)
class PlanningContext:
    """Portfolio-wide values every tier may read."""
    params: SimulationParams
    config: EngineConfig
    gap_revenue: float


def days_of_cover(units: float, forecast_velocity: float) -> float:
    """Units divided by forecast velocity; 0 without velocity."""
    return safe_divide(units, forecast_velocity)


def build_fc_result(
    aggregate: FCAggregate,
    forecast: DemandForecast,
    score: HeroScore,
) -> FCResult:
    """Seed an FCResult from the aggregate, forecast and score, before planning."""
    return FCResult(
        fc_code=aggregate.fc_code,
        fc_name=aggregate.fc_name,
        fc_id=aggregate.fc_id,
        is_hero_manual=score.is_hero_manual,
        is_hero_calculated=score.is_hero_calculated,
        is_hero=score.is_hero,
        hero_score=score.hero_score,
        score_breakdown=score,
        segment=score.segment,
        velocity=aggregate.velocity,
        velocity_7d=aggregate.velocity_7d,
        velocity_trend=aggregate.trend,
        trend_ratio=forecast.trend_ratio,
        forecast_velocity=forecast.forecast_velocity,
        forecast_demand=forecast.forecast_demand,
        on_hand_qty=aggregate.on_hand_qty,
        days_of_cover_current=round_half_up(forecast.days_of_cover_current),
        unit_price=aggregate.unit_price,
        unit_cogs=aggregate.unit_cogs,
        current_revenue=aggregate.revenue,
        current_qty=aggregate.quantity,
        margin_pct=aggregate.margin_pct,
    )


def _with_quantity(result: FCResult, production_qty: int) -> FCResult:
    doc_after = days_of_cover(result.on_hand_qty + production_qty, result.forecast_velocity)
    return result.model_copy(update={
        "production_qty": production_qty,
        "days_of_cover_after_production": round_half_up(doc_after),
    })


def apply_target_days_of_cover(result: FCResult, context: PlanningContext) -> FCResult:
    """Tier 1: heroes get doc_hero, others doc_non_hero; slow heroes at most 30 days."""
    params = context.params
    target = params.doc_hero if result.is_hero else params.doc_non_hero
    if result.is_hero and result.segment == MoverSegment.SLOW:
        target = min(target, context.config.slow_hero_doc_cap)
    return result.model_copy(update={"target_days_of_cover": target})


def apply_required_supply(result: FCResult, context: PlanningContext) -> FCResult:
    """
    Tier 2: required supply and raw production quantity.

    Formula:
        required = forecast_demand
                   + safety_stock_pct% * forecast_demand
                   + target_doc * forecast_velocity
        qty = max(0, round(required - on_hand))
    """
    safety_qty = context.params.safety_stock_pct / 100 * result.forecast_demand
    required = (
        result.forecast_demand
        + safety_qty
        + result.target_days_of_cover * result.forecast_velocity
    )
    production_qty = max(0, round_half_up(required - result.on_hand_qty))
    return _with_quantity(result.model_copy(update={"required_supply": required}), production_qty)


def apply_slow_mover_gate(result: FCResult, context: PlanningContext) -> FCResult:
    """Tier 3: non-hero slow movers are never replenished."""
    if result.segment == MoverSegment.SLOW and not result.is_hero:
        return _with_quantity(result, 0)
    return result


def apply_cash_recovery_cap(result: FCResult, context: PlanningContext) -> FCResult:
    """
    Tier 4: cut production back when it would lock cash in slow stock.

    If (on_hand + qty) / forecast_velocity > 120 and qty > 0:
        qty = max(0, round(90 * forecast_velocity - on_hand))
    """
    if result.production_qty <= 0:
        return result

    config = context.config
    doc_after = days_of_cover(result.on_hand_qty + result.production_qty, result.forecast_velocity)
    if doc_after <= config.cash_recovery_doc_ceiling:
        return result

    capped_qty = max(
        0,
        round_half_up(config.cash_recovery_doc_target * result.forecast_velocity - result.on_hand_qty),
    )
    return _with_quantity(result, capped_qty)


def apply_financials(result: FCResult, context: PlanningContext) -> FCResult:
    """
    Tier 5: cash, revenue and margin of the planned quantity.

    growth_contribution_pct = projected_revenue / gap_revenue * 100
    (0 when the gap is not positive)
    """
    qty = result.production_qty
    projected_revenue = qty * result.unit_price
    contribution = (
        projected_revenue / context.gap_revenue * 100
        if context.gap_revenue > 0 else 0.0
    )
    return result.model_copy(update={
        "cash_required": qty * result.unit_cogs,
        "projected_revenue": projected_revenue,
        "projected_margin": qty * (result.unit_price - result.unit_cogs),
        "growth_contribution_pct": contribution,
    })


ProductionTier = Callable[[FCResult, PlanningContext], FCResult]

PRODUCTION_TIERS: tuple[ProductionTier, ...] = (
    apply_target_days_of_cover,
    apply_required_supply,
    apply_slow_mover_gate,
    apply_cash_recovery_cap,
    apply_financials,
)


def plan_production(result: FCResult, context: PlanningContext) -> FCResult:
    """Run every production tier in order."""
    for tier in PRODUCTION_TIERS:
        result = tier(result, context)
    return result
