"""
Growth simulation schemas.

Covers the request parameters, the engine's tunable thresholds,
the per-family-code intermediate records and the simulation
summary returned to the caller.
"""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.growth_shape import GrowthShape


class MoverSegment(str, Enum):
    """Sales speed segment of a family code."""
    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"


class RiskType(str, Enum):
    """Kinds of risk the simulator flags."""
    STOCKOUT = "stockout"
    OVERSTOCK = "overstock"
    CONCENTRATION = "concentration"
    SLOW_MOVER_HIGH_STOCK = "slow_mover_high_stock"


class RiskSeverity(str, Enum):
    """Risk severity, lowest to highest."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ConstraintType(str, Enum):
    """Portfolio cap that zeroed a family code's production."""
    CASH = "cash"
    CAPACITY = "capacity"


# ===================
# PARAMETERS & CONFIG
# ===================

class SimulationParams(BaseSchema):
    """
    Caller-supplied simulation parameters.

    Accepts snake_case or the camelCase names of the public contract
    (growthPct, docHero, cashCap, ...). Caps of 0 mean unconstrained.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    growth_pct: float = Field(..., description="Revenue growth target in percent")
    horizon_months: int = Field(3, ge=1, description="Simulation horizon in months")
    doc_hero: float = Field(60, ge=0, description="Target days of cover for heroes")
    doc_non_hero: float = Field(30, ge=0, description="Target days of cover for non-heroes")
    safety_stock_pct: float = Field(15, ge=0, description="Safety stock as % of forecast demand")
    cash_cap: float = Field(0, ge=0, description="Max cash for production (0 = unbounded)")
    capacity_cap: float = Field(0, ge=0, description="Max units per month (0 = unbounded)")
    overstock_threshold: float = Field(1.5, gt=0, description="On-hand / forecast demand ratio flagged as overstock")


class EngineConfig(BaseSchema):
    """
    Thresholds used by the simulation engine.

    Defaults reproduce production behavior; tests and callers can
    override any of them.
    """

    days_per_month: int = Field(30, ge=1)

    # Stockout / lead time
    lead_time_buffer_days: float = Field(14, ge=0, description="On-hand days below which stockout is flagged")

    # Hero classification
    hero_score_threshold: float = Field(80, ge=0, le=100)
    hero_margin_threshold: float = Field(40, description="Minimum margin % for a calculated hero")

    # Mover segmentation
    fast_mover_percentile: float = Field(70, ge=0, le=100)
    slow_mover_percentile: float = Field(30, ge=0, le=100)
    slow_velocity_floor: float = Field(0.5, ge=0, description="Below this units/day is always slow")
    fast_velocity_min: float = Field(3, ge=0)
    normal_velocity_min: float = Field(1, ge=0)

    # Forecast
    trend_ratio_min: float = Field(0.7, gt=0)
    trend_ratio_max: float = Field(1.3, gt=0)

    # Inventory health
    healthy_doc_min: float = Field(30, ge=0)
    healthy_doc_max: float = Field(90, ge=0)
    inventory_doc_ceiling: float = Field(120, gt=0)

    # Production tiers
    slow_hero_doc_cap: float = Field(30, ge=0, description="Max target DOC for slow-moving heroes")
    cash_recovery_doc_ceiling: float = Field(120, gt=0, description="Post-production DOC that triggers the cap")
    cash_recovery_doc_target: float = Field(90, gt=0, description="DOC production is cut back to")

    # Risk
    overstock_high_ratio: float = Field(2.0, gt=0)
    very_slow_velocity: float = Field(0.2, ge=0)
    concentration_top_n: int = Field(3, ge=1)
    concentration_share_high: float = Field(0.5, gt=0, le=1)
    concentration_share_critical: float = Field(0.7, gt=0, le=1)
    risk_weight_stockout: float = Field(40, ge=0)
    risk_weight_overstock: float = Field(30, ge=0)
    risk_weight_concentration: float = Field(30, ge=0)
    risk_examples_limit: int = Field(3, ge=1)
    top_risks_limit: int = Field(10, ge=1)

    # Hero gap
    hero_candidate_min_score: float = Field(50, ge=0, le=100)
    hero_candidates_limit: int = Field(10, ge=1)
    hero_revenue_target_share: float = Field(0.6, ge=0, le=1)
    recoverability_ok_pct: float = Field(80, ge=0, le=100)

    # Growth shape
    efficiency_high: float = Field(65, ge=0, le=100)
    efficiency_medium: float = Field(40, ge=0, le=100)
    expand_momentum_floor: float = Field(-10)
    secondary_expand_score: float = Field(55, ge=0, le=100)
    secondary_expand_revenue_share: float = Field(10, ge=0, le=100)
    avoid_momentum: float = Field(-30)
    revenue_share_bonus_full: float = Field(30, gt=0, description="Revenue share % earning the full 10-point bonus")
    size_shift_threshold: float = Field(5, ge=0, description="Share points above/below equal share")
    band_velocity_reference: float = Field(5, gt=0, description="Units/day scored as full velocity for price bands")


# ===================
# PIPELINE RECORDS
# ===================

class BaselineTargets(BaseSchema):
    """Revenue baseline and growth target for the horizon."""

    avg_daily_revenue: float
    monthly_revenue: float
    current_revenue: float
    target_revenue: float
    gap_revenue: float = Field(..., description="Negative when growth_pct < 0 (contraction)")
    horizon_days: int


class FCAggregate(BaseSchema):
    """SKU financials rolled up to one family code, with inventory and demand."""

    fc_code: str
    fc_id: Optional[str] = None
    fc_name: str
    revenue: float = 0
    quantity: float = 0
    cogs: float = 0
    gross_profit: float = 0
    unit_price: float = Field(0, description="Mean avg_unit_price over contributing SKUs")
    unit_cogs: float = Field(0, description="Mean avg_unit_cogs over contributing SKUs")
    margin_pct: float = 0
    sku_count: int = Field(1, ge=1)
    is_fashion: bool = False
    is_hero_manual: bool = False
    velocity: float = Field(0, description="avg_daily_sales of the peak demand row")
    velocity_7d: float = Field(0, description="sales_velocity of the peak demand row")
    trend: Optional[str] = None
    on_hand_qty: float = 0


class PortfolioDistribution(BaseSchema):
    """Sorted velocity and margin values across all fashion family codes."""

    velocities: list[float]
    margins: list[float]

    @property
    def velocity_min(self) -> float:
        return self.velocities[0] if self.velocities else 0

    @property
    def velocity_max(self) -> float:
        return self.velocities[-1] if self.velocities else 1

    @property
    def margin_min(self) -> float:
        return self.margins[0] if self.margins else 0

    @property
    def margin_max(self) -> float:
        return self.margins[-1] if self.margins else 100


class DemandForecast(BaseSchema):
    """Trend-bounded demand over the horizon."""

    trend_ratio: float
    forecast_velocity: float
    forecast_demand: float
    days_of_cover_current: float


class HeroScore(BaseSchema):
    """Hero score breakdown and classification."""

    velocity_score: float = Field(..., ge=0, le=25)
    margin_score: float = Field(..., ge=0, le=25)
    stability_score: float = Field(..., ge=0, le=25)
    inventory_health_score: float = Field(..., ge=0, le=25)
    hero_score: int = Field(..., ge=0, le=100)
    velocity_percentile: float
    is_hero_manual: bool
    is_hero_calculated: bool
    is_hero: bool
    segment: MoverSegment


class RiskFlag(BaseSchema):
    """
    A detected risk.

    Per-FC flags only fill type/severity/detail/suggestion; portfolio
    summaries also report how many FCs share the flag.
    """

    type: RiskType
    severity: RiskSeverity
    detail: str
    suggestion: str
    fc_count: Optional[int] = None
    examples: list[str] = Field(default_factory=list)
    affected_on_hand_qty: Optional[float] = None


class FCResult(BaseSchema):
    """Simulation outcome for one family code."""

    fc_code: str
    fc_name: str
    fc_id: Optional[str] = None

    # Classification
    is_hero_manual: bool
    is_hero_calculated: bool
    is_hero: bool
    hero_score: int = Field(..., ge=0, le=100)
    score_breakdown: HeroScore
    segment: MoverSegment

    # Demand
    velocity: float
    velocity_7d: float
    velocity_trend: Optional[str] = None
    trend_ratio: float
    forecast_velocity: float
    forecast_demand: float

    # Inventory & plan
    on_hand_qty: float
    days_of_cover_current: int
    target_days_of_cover: float = 0
    required_supply: float = 0
    production_qty: int = Field(0, ge=0)
    days_of_cover_after_production: int = 0

    # Financials
    unit_price: float
    unit_cogs: float
    cash_required: float = 0
    current_revenue: float
    current_qty: float
    projected_revenue: float = 0
    margin_pct: float
    projected_margin: float = 0
    growth_contribution_pct: float = 0

    constrained_by: Optional[ConstraintType] = None
    risk_flags: list[RiskFlag] = Field(default_factory=list)
    reason: str = ""


# ===================
# SUMMARY
# ===================

class HeroGap(BaseSchema):
    """How much of the growth gap existing heroes can close."""

    incremental_revenue_needed: float
    hero_capacity: float
    hero_need: float
    gap: float
    hero_count_gap: int
    recoverability_pct: float
    recoverability_message: str


class MetricPair(BaseSchema):
    """Before / after values of one portfolio metric."""

    before: float
    after: float


class BeforeAfter(BaseSchema):
    """Portfolio snapshot before and after the production plan."""

    revenue_projected: MetricPair
    margin_pct: MetricPair
    hero_revenue_share: MetricPair
    stockout_risk_count: MetricPair
    avg_doc: MetricPair


class SimulationSummary(BaseSchema):
    """Portfolio-level simulation output."""

    total_production_units: int
    total_cash_required: float
    hero_count: int
    hero_revenue_share_pct: float
    risk_score: int = Field(..., ge=0, le=100)
    hero_gap: HeroGap
    before_after: BeforeAfter
    current_revenue: float
    target_revenue: float
    gap_revenue: float
    avg_margin_pct: float
    total_projected_margin: float
    details: list[FCResult]
    top_risks: list[RiskFlag]
    hero_candidates: list[FCResult]


class GrowthSimulationResponse(BaseSchema):
    """Complete simulator response."""

    simulation: SimulationSummary
    growth_shape: GrowthShape
