"""
Risk detection and aggregation.

Flags stockout, overstock and slow-mover risk per family code,
detects production concentration across the portfolio, and folds
everything into a short severity-ordered summary plus a 0-100
portfolio risk score.
"""

from typing import Optional

from models.growth_simulation import (
    FCResult,
    RiskFlag,
    RiskType,
    RiskSeverity,
    MoverSegment,
    SimulationParams,
    EngineConfig,
)
from services.simulation_messages import get_message, format_examples
from utils.math_utils import round_half_up, safe_divide

SEVERITY_RANK = {
    RiskSeverity.CRITICAL: 0,
    RiskSeverity.HIGH: 1,
    RiskSeverity.MEDIUM: 2,
    RiskSeverity.LOW: 3,
}

# Portfolio summary wording per aggregated risk type
SUMMARY_MESSAGE_KEYS = {
    RiskType.STOCKOUT: ("summary_stockout_detail", "summary_stockout_suggestion"),
    RiskType.OVERSTOCK: ("summary_overstock_detail", "summary_overstock_suggestion"),
    RiskType.SLOW_MOVER_HIGH_STOCK: ("summary_slow_mover_detail", "summary_slow_mover_suggestion"),
}


def detect_stockout(result: FCResult, config: EngineConfig) -> Optional[RiskFlag]:
    """On-hand covers fewer than 14 days of forecast velocity."""
    if result.forecast_velocity <= 0:
        return None

    days = result.on_hand_qty / result.forecast_velocity
    if days >= config.lead_time_buffer_days:
        return None

    return RiskFlag(
        type=RiskType.STOCKOUT,
        severity=RiskSeverity.CRITICAL if result.on_hand_qty == 0 else RiskSeverity.HIGH,
        detail=get_message("stockout_detail", days=round_half_up(days)),
        suggestion=get_message("stockout_suggestion_hero" if result.is_hero else "stockout_suggestion"),
    )


def detect_overstock(
    result: FCResult,
    params: SimulationParams,
    config: EngineConfig,
) -> Optional[RiskFlag]:
    """On-hand above forecast demand * overstock_threshold."""
    demand = result.forecast_demand
    if demand <= 0 or result.on_hand_qty <= demand * params.overstock_threshold:
        return None

    high = result.on_hand_qty > demand * config.overstock_high_ratio
    slow = result.segment == MoverSegment.SLOW

    return RiskFlag(
        type=RiskType.OVERSTOCK,
        severity=RiskSeverity.HIGH if high else RiskSeverity.MEDIUM,
        detail=get_message("overstock_detail", ratio=result.on_hand_qty / demand),
        suggestion=get_message("overstock_suggestion_slow" if slow else "overstock_suggestion"),
    )


def detect_slow_mover(result: FCResult, config: EngineConfig) -> Optional[RiskFlag]:
    """Slow segment still holding stock."""
    if result.segment != MoverSegment.SLOW or result.on_hand_qty <= 0:
        return None

    very_slow = result.velocity < config.very_slow_velocity
    blocked = result.production_qty == 0

    return RiskFlag(
        type=RiskType.SLOW_MOVER_HIGH_STOCK,
        severity=RiskSeverity.HIGH if very_slow else RiskSeverity.MEDIUM,
        detail=get_message(
            "slow_mover_detail",
            velocity=result.velocity,
            on_hand=result.on_hand_qty,
            doc=result.days_of_cover_after_production,
        ),
        suggestion=get_message(
            "slow_mover_suggestion_blocked" if blocked else "slow_mover_suggestion"
        ),
    )


def detect_fc_risks(
    result: FCResult,
    params: SimulationParams,
    config: EngineConfig,
) -> list[RiskFlag]:
    """Evaluate every per-FC rule independently; an FC may carry several flags."""
    flags = [
        detect_stockout(result, config),
        detect_overstock(result, params, config),
        detect_slow_mover(result, config),
    ]
    return [flag for flag in flags if flag is not None]


def attach_risk_flags(
    results: list[FCResult],
    params: SimulationParams,
    config: EngineConfig,
) -> list[FCResult]:
    """Return copies of results carrying their per-FC risk flags."""
    return [
        result.model_copy(update={"risk_flags": detect_fc_risks(result, params, config)})
        for result in results
    ]


def concentration_share(results: list[FCResult], config: EngineConfig) -> float:
    """
    Share of planned units taken by the leading producers.

    Results are read in the priority order left by constraint
    enforcement (heroes first, then hero score).

    Formula:
        share = sum(first 3 production_qty) / sum(production_qty)
        over FCs with production > 0; 0 when nothing is produced
    """
    quantities = [r.production_qty for r in results if r.production_qty > 0]
    total = sum(quantities)
    return safe_divide(sum(quantities[:config.concentration_top_n]), total)


def detect_concentration(results: list[FCResult], config: EngineConfig) -> Optional[RiskFlag]:
    """Top producers above 50% of planned units → high; above 70% → critical."""
    share = concentration_share(results, config)
    if share <= config.concentration_share_high:
        return None

    critical = share > config.concentration_share_critical
    return RiskFlag(
        type=RiskType.CONCENTRATION,
        severity=RiskSeverity.CRITICAL if critical else RiskSeverity.HIGH,
        detail=get_message("concentration_detail", top_n=config.concentration_top_n, share=share * 100),
        suggestion=get_message("concentration_suggestion"),
    )


def summarize_risks(
    results: list[FCResult],
    concentration: Optional[RiskFlag],
    config: EngineConfig,
) -> list[RiskFlag]:
    """
    Aggregate per-FC flags by type into a bounded portfolio summary.

    Each type reports its FC count, worst severity, up to three example
    names and the on-hand units involved. Concentration (if any) leads,
    types follow in first-seen order, then the list is stably sorted by
    severity and truncated to the top 10.
    """
    grouped: dict[RiskType, dict] = {}

    for result in results:
        name = result.fc_name or result.fc_code
        for flag in result.risk_flags:
            entry = grouped.get(flag.type)
            if entry is None:
                grouped[flag.type] = {
                    "count": 1,
                    "severity": flag.severity,
                    "examples": [name],
                    "on_hand": result.on_hand_qty,
                }
                continue
            entry["count"] += 1
            if SEVERITY_RANK[flag.severity] < SEVERITY_RANK[entry["severity"]]:
                entry["severity"] = flag.severity
            if len(entry["examples"]) < config.risk_examples_limit:
                entry["examples"].append(name)
            entry["on_hand"] += result.on_hand_qty

    summary = [concentration] if concentration else []

    for risk_type, entry in grouped.items():
        detail_key, suggestion_key = SUMMARY_MESSAGE_KEYS[risk_type]
        examples = format_examples(entry["examples"], entry["count"])
        summary.append(RiskFlag(
            type=risk_type,
            severity=entry["severity"],
            detail=get_message(detail_key, count=entry["count"]),
            suggestion=get_message(suggestion_key, examples=examples),
            fc_count=entry["count"],
            examples=entry["examples"],
            affected_on_hand_qty=entry["on_hand"],
        ))

    summary.sort(key=lambda flag: SEVERITY_RANK[flag.severity])
    return summary[:config.top_risks_limit]


def has_flag(result: FCResult, risk_type: RiskType) -> bool:
    return any(flag.type == risk_type for flag in result.risk_flags)


def calculate_risk_score(
    results: list[FCResult],
    has_concentration: bool,
    config: EngineConfig,
) -> int:
    """
    Portfolio risk score, 0-100.

    Formula:
        40 * stockout_ratio + 30 * overstock_ratio + 30 * (1 if concentration)
        where ratios are the share of FCs carrying that flag
    """
    count = len(results)
    stockout_ratio = safe_divide(sum(1 for r in results if has_flag(r, RiskType.STOCKOUT)), count)
    overstock_ratio = safe_divide(sum(1 for r in results if has_flag(r, RiskType.OVERSTOCK)), count)

    score = (
        stockout_ratio * config.risk_weight_stockout
        + overstock_ratio * config.risk_weight_overstock
        + (config.risk_weight_concentration if has_concentration else 0)
    )
    return min(100, round_half_up(score))
