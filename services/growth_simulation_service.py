"""
Growth simulation orchestrator.

Runs the full pipeline for one tenant:
aggregate → baseline → distribution → forecast → score → plan →
constrain → flag risks → hero gap / before-after → growth shape.

run_simulation is a pure function of its inputs; GrowthSimulationService
adds data fetching and the time budget around it.
"""

from datetime import datetime
from typing import Optional
import asyncio
import math
import time
import structlog

from config import settings
from models.growth_inputs import SimulationInputs
from models.growth_simulation import (
    SimulationParams,
    EngineConfig,
    BaselineTargets,
    FCResult,
    RiskType,
    HeroGap,
    MetricPair,
    BeforeAfter,
    SimulationSummary,
    GrowthSimulationResponse,
)
from services.fc_aggregation_service import build_family_code_index, aggregate_family_codes
from services.baseline_service import calculate_baseline
from services.demand_forecast_service import forecast_demand
from services.hero_scoring_service import build_portfolio_distribution, score_family_code
from services.production_planner_service import PlanningContext, build_fc_result, plan_production
from services.constraint_service import enforce_constraints
from services.risk_service import (
    attach_risk_flags,
    detect_concentration,
    summarize_risks,
    calculate_risk_score,
    has_flag,
)
from services.growth_shape_service import classify_growth_shape
from services.growth_data_service import get_growth_data_service
from services.simulation_messages import describe_fc, describe_recoverability
from exceptions import SimulationTimeoutError
from utils.math_utils import clamp, round_half_up, safe_divide

logger = structlog.get_logger(__name__)


# ===================
# PORTFOLIO ANALYSIS
# ===================

def select_hero_candidates(results: list[FCResult], config: EngineConfig) -> list[FCResult]:
    """Non-manual FCs scoring 50+, best first, at most 10."""
    candidates = [
        r for r in results
        if not r.is_hero_manual and r.hero_score >= config.hero_candidate_min_score
    ]
    candidates.sort(key=lambda r: -r.hero_score)
    return candidates[:config.hero_candidates_limit]


def calculate_hero_gap(
    results: list[FCResult],
    candidates: list[FCResult],
    gap_revenue: float,
    config: EngineConfig,
) -> HeroGap:
    """
    How much of the growth gap existing heroes can cover.

    Formula:
        capacity = sum over heroes of
                   min(on_hand + production, forecast_demand) * realized unit price
        need = gap_revenue * 0.6
        gap = max(0, need - capacity)
        recoverability = clamp(capacity / need * 100, 0, 100)   (100 if need <= 0)
        hero_count_gap = ceil(gap / mean candidate projected revenue)
    """
    heroes = [r for r in results if r.is_hero]

    hero_capacity = sum(
        min(r.on_hand_qty + r.production_qty, r.forecast_demand)
        * safe_divide(r.current_revenue, r.current_qty)
        for r in heroes
    )
    hero_need = gap_revenue * config.hero_revenue_target_share
    gap = max(0.0, hero_need - hero_capacity)

    if hero_need > 0:
        recoverability_pct = clamp(hero_capacity / hero_need * 100, 0, 100)
    else:
        recoverability_pct = 100.0

    if candidates:
        avg_candidate_revenue = sum(c.projected_revenue for c in candidates) / len(candidates)
    else:
        avg_candidate_revenue = 1.0
    hero_count_gap = math.ceil(gap / avg_candidate_revenue) if avg_candidate_revenue > 0 else 0

    return HeroGap(
        incremental_revenue_needed=gap_revenue,
        hero_capacity=hero_capacity,
        hero_need=hero_need,
        gap=gap,
        hero_count_gap=hero_count_gap,
        recoverability_pct=recoverability_pct,
        recoverability_message=describe_recoverability(
            recoverability_pct, hero_count_gap, config.recoverability_ok_pct
        ),
    )


def compare_before_after(
    results: list[FCResult],
    baseline: BaselineTargets,
    fashion_revenue: float,
    avg_margin_pct: float,
    config: EngineConfig,
) -> BeforeAfter:
    """Portfolio snapshot without and with the production plan."""
    count = len(results)
    projected_total = sum(r.projected_revenue for r in results)

    hero_revenue = sum(r.current_revenue for r in results if r.is_hero)
    hero_revenue_after = sum(r.current_revenue + r.projected_revenue for r in results if r.is_hero)

    stockout_before = sum(1 for r in results if has_flag(r, RiskType.STOCKOUT))
    stockout_after = sum(
        1 for r in results
        if r.production_qty > 0
        and r.days_of_cover_after_production < config.lead_time_buffer_days
    )

    avg_doc_before = safe_divide(sum(r.days_of_cover_current for r in results), count)
    avg_doc_after = safe_divide(sum(r.days_of_cover_after_production for r in results), count)

    return BeforeAfter(
        revenue_projected=MetricPair(
            before=baseline.current_revenue,
            after=baseline.current_revenue + projected_total,
        ),
        margin_pct=MetricPair(before=avg_margin_pct, after=avg_margin_pct),
        hero_revenue_share=MetricPair(
            before=safe_divide(hero_revenue, fashion_revenue) * 100,
            after=safe_divide(hero_revenue_after, fashion_revenue + projected_total) * 100,
        ),
        stockout_risk_count=MetricPair(before=stockout_before, after=stockout_after),
        avg_doc=MetricPair(
            before=round_half_up(avg_doc_before),
            after=round_half_up(avg_doc_after),
        ),
    )


# ===================
# PIPELINE
# ===================

def run_simulation(
    inputs: SimulationInputs,
    params: SimulationParams,
    config: Optional[EngineConfig] = None,
) -> Optional[GrowthSimulationResponse]:
    """
    Run the growth simulation on a snapshot of inputs.

    Args:
        inputs: Every input collection for one tenant
        params: Caller-supplied simulation parameters
        config: Engine thresholds (defaults when omitted)

    Returns:
        Simulation and growth shape, or None when there is not enough
        data (no revenue history, no SKU rows, or no fashion FC)
    """
    config = config or EngineConfig()

    if not inputs.revenue_facts or not inputs.sku_summaries:
        logger.info(
            "growth_simulation_insufficient_data",
            revenue_days=len(inputs.revenue_facts),
            skus=len(inputs.sku_summaries),
        )
        return None

    index = build_family_code_index(inputs.family_codes, inputs.sku_fc_mappings)
    aggregates = aggregate_family_codes(inputs, index)
    if not aggregates:
        logger.info("growth_simulation_insufficient_data", fashion_fcs=0)
        return None

    baseline = calculate_baseline(inputs.revenue_facts, params, config)
    distribution = build_portfolio_distribution(aggregates)
    context = PlanningContext(params=params, config=config, gap_revenue=baseline.gap_revenue)

    # Scores use the full distribution, before any cap is applied
    planned = []
    for aggregate in aggregates:
        forecast = forecast_demand(aggregate, baseline.horizon_days, config)
        score = score_family_code(aggregate, forecast, distribution, config)
        planned.append(plan_production(build_fc_result(aggregate, forecast, score), context))

    constrained = enforce_constraints(planned, params)
    flagged = attach_risk_flags(constrained, params, config)
    results = [r.model_copy(update={"reason": describe_fc(r)}) for r in flagged]

    concentration = detect_concentration(results, config)
    top_risks = summarize_risks(results, concentration, config)
    risk_score = calculate_risk_score(results, concentration is not None, config)

    fashion_revenue = sum(a.revenue for a in aggregates)
    hero_revenue = sum(r.current_revenue for r in results if r.is_hero)

    candidates = select_hero_candidates(results, config)
    hero_gap = calculate_hero_gap(results, candidates, baseline.gap_revenue, config)

    total_units = sum(r.production_qty for r in results)
    total_cash = sum(r.cash_required for r in results)
    total_margin = sum(r.projected_margin for r in results)
    avg_margin_pct = safe_divide(total_margin, total_cash + total_margin) * 100

    before_after = compare_before_after(results, baseline, fashion_revenue, avg_margin_pct, config)

    details = sorted(results, key=lambda r: -r.production_qty)

    simulation = SimulationSummary(
        total_production_units=total_units,
        total_cash_required=total_cash,
        hero_count=sum(1 for r in results if r.is_hero),
        hero_revenue_share_pct=safe_divide(hero_revenue, fashion_revenue) * 100,
        risk_score=risk_score,
        hero_gap=hero_gap,
        before_after=before_after,
        current_revenue=baseline.current_revenue,
        target_revenue=baseline.target_revenue,
        gap_revenue=baseline.gap_revenue,
        avg_margin_pct=avg_margin_pct,
        total_projected_margin=total_margin,
        details=details,
        top_risks=top_risks,
        hero_candidates=candidates,
    )

    growth_shape = classify_growth_shape(
        details,
        inputs.sku_summaries,
        inputs.momentum,
        index.fc_code_by_sku,
        config,
    )

    return GrowthSimulationResponse(simulation=simulation, growth_shape=growth_shape)


# ===================
# SERVICE
# ===================

class GrowthSimulationService:
    """
    Growth simulation for a tenant.

    Fetches inputs, runs the pipeline off the event loop, and fails
    closed when the whole run exceeds its time budget.
    """

    def __init__(self):
        self.data_service = get_growth_data_service()
        self.config = EngineConfig()
        self.timeout_seconds = settings.simulation_timeout_seconds

    async def _run(
        self,
        tenant_id: str,
        params: SimulationParams,
        now: Optional[datetime],
    ) -> Optional[GrowthSimulationResponse]:
        inputs = await self.data_service.fetch_inputs(tenant_id, now=now)
        return await asyncio.to_thread(run_simulation, inputs, params, self.config)

    async def simulate(
        self,
        tenant_id: str,
        params: SimulationParams,
        now: Optional[datetime] = None,
    ) -> Optional[GrowthSimulationResponse]:
        """
        Run a growth simulation for a tenant.

        Args:
            tenant_id: Tenant scope for every input query
            params: Simulation parameters
            now: Reference instant for the momentum window (defaults to now)

        Returns:
            Simulation response, or None for insufficient data

        Raises:
            SimulationInputError: If an input collection fails to load
            SimulationTimeoutError: If the run exceeds the time budget
        """
        logger.info(
            "growth_simulation_started",
            tenant_id=tenant_id,
            growth_pct=params.growth_pct,
            horizon_months=params.horizon_months,
        )
        started = time.perf_counter()

        try:
            result = await asyncio.wait_for(
                self._run(tenant_id, params, now),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "growth_simulation_timeout",
                tenant_id=tenant_id,
                timeout_seconds=self.timeout_seconds,
            )
            raise SimulationTimeoutError(tenant_id, self.timeout_seconds)

        logger.info(
            "growth_simulation_completed",
            tenant_id=tenant_id,
            has_result=result is not None,
            production_units=result.simulation.total_production_units if result else 0,
            elapsed_ms=round((time.perf_counter() - started) * 1000),
        )
        return result


# Singleton instance
_growth_simulation_service: Optional[GrowthSimulationService] = None


def get_growth_simulation_service() -> GrowthSimulationService:
    """Get or create GrowthSimulationService singleton."""
    global _growth_simulation_service
    if _growth_simulation_service is None:
        _growth_simulation_service = GrowthSimulationService()
    return _growth_simulation_service
