"""
Growth shape classification.

Groups the simulated family codes by merchandising category, size
and unit-price band, scores each bucket's efficiency and momentum,
and recommends which categories to expand or avoid.
"""

from typing import Optional
import structlog

from models.growth_inputs import SkuSummary, SkuMomentum
from models.growth_simulation import FCResult, RiskType, EngineConfig
from models.growth_shape import (
    EfficiencyLabel,
    GrowthDirection,
    SizeDirection,
    GrowthShapeCategory,
    SizeShift,
    PriceBandShape,
    GrowthShape,
)
from services.simulation_messages import (
    get_message,
    describe_category,
    describe_gravity,
)
from utils.math_utils import clamp, round_half_up, safe_divide
from utils.text_utils import classify_category, extract_size, SIZE_ORDER

logger = structlog.get_logger(__name__)

# (label, inclusive lower bound, exclusive upper bound) on realized unit price
PRICE_BANDS = [
    ("< 300K", 0, 300_000),
    ("300-500K", 300_000, 500_000),
    ("500K-1M", 500_000, 1_000_000),
    ("> 1M", 1_000_000, float("inf")),
]


def efficiency_label(score: float, config: EngineConfig) -> EfficiencyLabel:
    """CAO at 65+, TRUNG BÌNH at 40+, else THẤP."""
    if score >= config.efficiency_high:
        return EfficiencyLabel.HIGH
    if score >= config.efficiency_medium:
        return EfficiencyLabel.MEDIUM
    return EfficiencyLabel.LOW


def momentum_pct(recent: float, prior: float) -> float:
    """
    Recent vs. prior units sold, in percent.

    Formula:
        (recent - prior) / prior * 100
        100 when there is no prior volume but recent sales exist, else 0
    """
    if prior > 0:
        return (recent - prior) / prior * 100
    return 100.0 if recent > 0 else 0.0


def momentum_stability(recent: float, prior: float) -> float:
    """1 - |recent - prior| / max(recent, prior); 0.5 without prior volume."""
    if prior <= 0:
        return 0.5
    return 1 - abs(recent - prior) / max(recent, prior)


def fold_momentum(
    momentum: list[SkuMomentum],
    fc_code_by_sku: dict[str, str],
) -> dict[str, tuple[float, float]]:
    """Sum SKU momentum into (recent, prior) per fashion FC code."""
    folded: dict[str, tuple[float, float]] = {}
    for row in momentum:
        fc_code = fc_code_by_sku.get(row.sku)
        if not fc_code:
            continue
        recent, prior = folded.get(fc_code, (0.0, 0.0))
        folded[fc_code] = (recent + row.recent_qty, prior + row.prior_qty)
    return folded


def category_efficiency(
    avg_velocity: float,
    max_velocity: float,
    avg_margin_pct: float,
    overstock_ratio: float,
    stability: float,
    revenue_share: float,
    config: EngineConfig,
) -> int:
    """
    Category efficiency score, 0-100.

    Formula:
        40 * clamp(avg_velocity / max_category_velocity)
        + 25 * clamp(avg_margin / 100)
        + 20 * (1 - clamp(overstock_ratio))
        + 15 * clamp(stability)
        + 10 * clamp(revenue_share / 30)
    """
    score = (
        clamp(safe_divide(avg_velocity, max_velocity), 0, 1) * 40
        + clamp(avg_margin_pct / 100, 0, 1) * 25
        + (1 - clamp(overstock_ratio, 0, 1)) * 20
        + clamp(stability, 0, 1) * 15
        + clamp(revenue_share / config.revenue_share_bonus_full, 0, 1) * 10
    )
    return round_half_up(min(100, score))


def category_direction(
    label: EfficiencyLabel,
    score: int,
    momentum: float,
    revenue_share: float,
    config: EngineConfig,
) -> GrowthDirection:
    """
    Expand / hold / avoid.

    expand: CAO and momentum >= -10,
            or score >= 55 and momentum >= 0 and revenue share >= 10%
    avoid:  THẤP or momentum < -30
    hold:   otherwise
    """
    if label == EfficiencyLabel.HIGH and momentum >= config.expand_momentum_floor:
        return GrowthDirection.EXPAND
    if (
        score >= config.secondary_expand_score
        and momentum >= 0
        and revenue_share >= config.secondary_expand_revenue_share
    ):
        return GrowthDirection.EXPAND
    if label == EfficiencyLabel.LOW or momentum < config.avoid_momentum:
        return GrowthDirection.AVOID
    return GrowthDirection.HOLD


def classify_categories(
    details: list[FCResult],
    fc_momentum: dict[str, tuple[float, float]],
    config: EngineConfig,
) -> list[GrowthShapeCategory]:
    """Score every category; sorted by efficiency descending."""
    groups: dict[str, dict] = {}
    total_revenue = sum(d.current_revenue for d in details)

    for result in details:
        category = classify_category(result.fc_name)
        group = groups.setdefault(category, {
            "count": 0,
            "velocity": 0.0,
            "recent": 0.0,
            "prior": 0.0,
            "revenue": 0.0,
            "margin": 0.0,
            "doc": 0.0,
            "overstock": 0,
        })
        group["count"] += 1
        group["velocity"] += result.velocity
        recent, prior = fc_momentum.get(result.fc_code, (0.0, 0.0))
        group["recent"] += recent
        group["prior"] += prior
        group["revenue"] += result.current_revenue
        group["margin"] += result.margin_pct
        group["doc"] += result.days_of_cover_current
        if any(flag.type == RiskType.OVERSTOCK for flag in result.risk_flags):
            group["overstock"] += 1

    max_velocity = max(
        [g["velocity"] / g["count"] for g in groups.values()] + [0.01]
    )

    categories = []
    for category, group in groups.items():
        count = group["count"]
        avg_velocity = group["velocity"] / count
        avg_margin = group["margin"] / count
        overstock_ratio = group["overstock"] / count
        revenue_share = safe_divide(group["revenue"], total_revenue) * 100
        momentum = momentum_pct(group["recent"], group["prior"])

        score = category_efficiency(
            avg_velocity,
            max_velocity,
            avg_margin,
            overstock_ratio,
            momentum_stability(group["recent"], group["prior"]),
            revenue_share,
            config,
        )
        label = efficiency_label(score, config)

        categories.append(GrowthShapeCategory(
            category=category,
            fc_count=count,
            total_velocity=group["velocity"],
            avg_velocity=avg_velocity,
            momentum_pct=momentum,
            avg_margin_pct=avg_margin,
            avg_days_of_cover=group["doc"] / count,
            overstock_ratio=overstock_ratio,
            revenue_share=revenue_share,
            efficiency_score=score,
            efficiency_label=label,
            direction=category_direction(label, score, momentum, revenue_share, config),
            reason=describe_category(
                avg_velocity, max_velocity, avg_margin, revenue_share, momentum, overstock_ratio
            ),
        ))

    categories.sort(key=lambda c: -c.efficiency_score)
    return categories


def calculate_size_shifts(
    details: list[FCResult],
    sku_summaries: list[SkuSummary],
    fc_code_by_sku: dict[str, str],
    config: EngineConfig,
) -> list[SizeShift]:
    """
    Share of weighted velocity per size, vs. an equal split.

    Each SKU contributes its FC's velocity per unit sold times the
    SKU's own units: fc.velocity / max(fc.current_qty, 1) * sku_qty.
    Sorted by share descending.
    """
    by_code = {d.fc_code: d for d in details}
    size_velocity: dict[str, float] = {}

    for row in sku_summaries:
        if not row.sku:
            continue
        fc_code = fc_code_by_sku.get(row.sku)
        size = extract_size(row.sku)
        result = by_code.get(fc_code) if fc_code else None
        if not size or result is None:
            continue
        weighted = result.velocity / max(result.current_qty, 1) * (row.total_quantity or 0)
        size_velocity[size] = size_velocity.get(size, 0.0) + weighted

    if not size_velocity:
        return []

    total = sum(size_velocity.values())
    equal_share = 100 / len(size_velocity)
    threshold = config.size_shift_threshold

    shifts = []
    for size in SIZE_ORDER:
        if size not in size_velocity:
            continue
        share = safe_divide(size_velocity[size], total) * 100
        delta = share - equal_share
        if delta > threshold:
            direction = SizeDirection.UP
        elif delta < -threshold:
            direction = SizeDirection.DOWN
        else:
            direction = SizeDirection.STABLE
        shifts.append(SizeShift(
            size=size,
            total_velocity=size_velocity[size],
            velocity_share=share,
            delta_pct=delta,
            direction=direction,
            direction_label=get_message(f"size_{direction.value}"),
        ))

    shifts.sort(key=lambda s: -s.velocity_share)
    return shifts


def classify_price_bands(details: list[FCResult], config: EngineConfig) -> list[PriceBandShape]:
    """
    Performance per realized unit-price band; empty bands are dropped.

    Formula:
        efficiency = 40 * clamp(avg_velocity / 5) + 25 * clamp(avg_margin / 100)
                     + 20 + 15 * (non-declining FCs / n)
        momentum = (trending up - trending down) / n * 100
    Sorted by average velocity descending.
    """
    bands = []
    for band, lower, upper in PRICE_BANDS:
        members = [
            d for d in details
            if lower <= safe_divide(d.current_revenue, d.current_qty) < upper
        ]
        if not members:
            continue

        count = len(members)
        avg_velocity = sum(d.velocity for d in members) / count
        avg_margin = sum(d.margin_pct for d in members) / count
        up_count = sum(1 for d in members if d.velocity_trend == "up")
        down_count = sum(1 for d in members if d.velocity_trend == "down")

        score = round_half_up(
            clamp(avg_velocity / config.band_velocity_reference, 0, 1) * 40
            + clamp(avg_margin / 100, 0, 1) * 25
            + 20
            + 15 * (count - down_count) / count
        )

        bands.append(PriceBandShape(
            band=band,
            fc_count=count,
            avg_velocity=avg_velocity,
            avg_margin_pct=avg_margin,
            momentum_pct=(up_count - down_count) / count * 100,
            efficiency_score=min(100, score),
            efficiency_label=efficiency_label(score, config),
        ))

    bands.sort(key=lambda b: -b.avg_velocity)
    return bands


def classify_growth_shape(
    details: list[FCResult],
    sku_summaries: list[SkuSummary],
    momentum: list[SkuMomentum],
    fc_code_by_sku: dict[str, str],
    config: EngineConfig,
) -> GrowthShape:
    """
    Build the growth shape for a simulated portfolio.

    Args:
        details: Final FC results (after constraints and risk flags)
        sku_summaries: SKU rows, for size extraction
        momentum: Recent vs. prior units per SKU
        fc_code_by_sku: Registry-backed SKU → FC code map
        config: Engine thresholds

    Returns:
        GrowthShape with categories, sizes, price bands and summary text
    """
    fc_momentum = fold_momentum(momentum, fc_code_by_sku)
    categories = classify_categories(details, fc_momentum, config)
    size_shifts = calculate_size_shifts(details, sku_summaries, fc_code_by_sku, config)
    price_bands = classify_price_bands(details, config)

    expand = [c for c in categories if c.direction == GrowthDirection.EXPAND]
    avoid = [c for c in categories if c.direction == GrowthDirection.AVOID]

    top_category: Optional[str] = None
    if expand:
        top_category = expand[0].category
    elif categories:
        top_category = categories[0].category

    gravity_summary, shape_statement = describe_gravity(
        top_category,
        size_shifts[0].size if size_shifts else None,
        price_bands[0].band if price_bands else None,
    )

    logger.debug(
        "growth_shape_classified",
        categories=len(categories),
        expand=len(expand),
        avoid=len(avoid),
        sizes=len(size_shifts),
        price_bands=len(price_bands),
    )

    return GrowthShape(
        expand_categories=expand,
        avoid_categories=avoid,
        categories=categories,
        size_shifts=size_shifts,
        price_bands=price_bands,
        gravity_summary=gravity_summary,
        shape_statement=shape_statement,
    )
