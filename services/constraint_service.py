"""
Portfolio cash and capacity caps.

Funds family codes in priority order (heroes first, then by hero
score) and zeroes production for everything from the first FC that
pushes the running total past a cap. Funding is all-or-nothing per
FC; there is no partial allocation.
"""

import structlog

from models.growth_simulation import FCResult, ConstraintType, SimulationParams

logger = structlog.get_logger(__name__)


def priority_order(results: list[FCResult]) -> list[FCResult]:
    """Heroes first, then hero score descending. Ties keep input order."""
    return sorted(results, key=lambda r: (not r.is_hero, -r.hero_score))


def zero_production(result: FCResult, constraint: ConstraintType) -> FCResult:
    """Drop an FC's production and everything derived from it."""
    return result.model_copy(update={
        "production_qty": 0,
        "cash_required": 0.0,
        "projected_revenue": 0.0,
        "projected_margin": 0.0,
        "growth_contribution_pct": 0.0,
        "constrained_by": constraint,
    })


def _cumulative_cutoff(
    results: list[FCResult],
    cap: float,
    field: str,
    constraint: ConstraintType,
) -> list[FCResult]:
    """
    Zero every FC from the first one whose running total exceeds cap.

    The running total keeps each FC's own amount even after the FC is
    zeroed, so once the cap is crossed every later FC is cut too.
    """
    running_total = 0.0
    cut_count = 0
    constrained = []

    for result in results:
        running_total += getattr(result, field)
        if running_total > cap and result.production_qty > 0:
            constrained.append(zero_production(result, constraint))
            cut_count += 1
        else:
            constrained.append(result)

    if cut_count:
        logger.info(
            "constraint_cutoff_applied",
            constraint=constraint.value,
            cap=cap,
            requested=running_total,
            fcs_cut=cut_count,
        )

    return constrained


def enforce_cash_cap(results: list[FCResult], cash_cap: float) -> list[FCResult]:
    """Cumulative cutoff on cash_required. A cap of 0 means unconstrained."""
    if cash_cap <= 0:
        return results
    return _cumulative_cutoff(results, cash_cap, "cash_required", ConstraintType.CASH)


def enforce_capacity_cap(
    results: list[FCResult],
    capacity_cap: float,
    horizon_months: int,
) -> list[FCResult]:
    """Cumulative cutoff on units against capacity_cap * horizon_months."""
    if capacity_cap <= 0:
        return results
    return _cumulative_cutoff(
        results,
        capacity_cap * horizon_months,
        "production_qty",
        ConstraintType.CAPACITY,
    )


def enforce_constraints(results: list[FCResult], params: SimulationParams) -> list[FCResult]:
    """
    Apply the cash cap, then the capacity cap, in priority order.

    Returns:
        FCResults in priority order with over-cap production zeroed
    """
    ordered = priority_order(results)
    ordered = enforce_cash_cap(ordered, params.cash_cap)
    return enforce_capacity_cap(ordered, params.capacity_cap, params.horizon_months)
