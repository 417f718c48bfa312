"""
Revenue baseline and growth target.

Projects the recent daily revenue run-rate over the simulation
horizon and derives the revenue gap the plan has to close.
"""

from models.growth_inputs import RevenueFact
from models.growth_simulation import SimulationParams, EngineConfig, BaselineTargets


def calculate_baseline(
    revenue_facts: list[RevenueFact],
    params: SimulationParams,
    config: EngineConfig,
) -> BaselineTargets:
    """
    Calculate current revenue, target revenue and the gap between them.

    Formula:
        avg_daily = sum(daily revenue) / max(days, 1)
        monthly = avg_daily * 30
        current = monthly * horizon_months
        target = current * (1 + growth_pct / 100)
        gap = target - current   (negative for a contraction plan)
    """
    total_revenue = sum(fact.metric_value or 0 for fact in revenue_facts)
    days = max(len(revenue_facts), 1)

    avg_daily_revenue = total_revenue / days
    monthly_revenue = avg_daily_revenue * config.days_per_month
    current_revenue = monthly_revenue * params.horizon_months
    target_revenue = current_revenue * (1 + params.growth_pct / 100)

    return BaselineTargets(
        avg_daily_revenue=avg_daily_revenue,
        monthly_revenue=monthly_revenue,
        current_revenue=current_revenue,
        target_revenue=target_revenue,
        gap_revenue=target_revenue - current_revenue,
        horizon_days=params.horizon_months * config.days_per_month,
    )
