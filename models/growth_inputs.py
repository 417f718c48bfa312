"""
Raw input rows for the growth simulator.

One schema per Supabase collection the simulator reads. Numeric
columns are nullable in the source views; None is read as 0 by
the engine.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema


class RevenueFact(BaseSchema):
    """Daily NET_REVENUE total from kpi_facts_daily."""

    metric_value: Optional[float] = None


class SkuSummary(BaseSchema):
    """Row of the fdp_sku_summary view (lifetime SKU financials)."""

    sku: Optional[str] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    total_revenue: Optional[float] = None
    total_quantity: Optional[float] = None
    total_cogs: Optional[float] = None
    gross_profit: Optional[float] = None
    margin_percent: Optional[float] = None
    avg_unit_price: Optional[float] = None
    avg_unit_cogs: Optional[float] = None


class FamilyCode(BaseSchema):
    """Family code registry entry (inv_family_codes)."""

    id: str
    fc_code: str
    fc_name: Optional[str] = None
    is_core_hero: bool = Field(False, description="Flagged hero by merchandising staff")


class SkuFcMapping(BaseSchema):
    """SKU → family code link (inv_sku_fc_mapping)."""

    sku: Optional[str] = None
    fc_id: Optional[str] = None


class InventoryPosition(BaseSchema):
    """On-hand units for a family code at one location (inv_state_positions)."""

    fc_id: Optional[str] = None
    on_hand: Optional[float] = None


class DemandSignal(BaseSchema):
    """Velocity signal for a family code (inv_state_demand)."""

    fc_id: Optional[str] = None
    sales_velocity: Optional[float] = Field(None, description="Short-window (7-day) units/day")
    avg_daily_sales: Optional[float] = Field(None, description="Longer-window average units/day")
    trend: Optional[str] = Field(None, description="up, down, flat")


class SkuMomentum(BaseSchema):
    """Units sold per SKU in the recent vs. prior half of the order window."""

    sku: str
    recent_qty: float = 0
    prior_qty: float = 0


class SimulationInputs(BaseSchema):
    """Snapshot of every collection one simulation run consumes."""

    revenue_facts: list[RevenueFact] = Field(default_factory=list)
    sku_summaries: list[SkuSummary] = Field(default_factory=list)
    family_codes: list[FamilyCode] = Field(default_factory=list)
    sku_fc_mappings: list[SkuFcMapping] = Field(default_factory=list)
    inventory_positions: list[InventoryPosition] = Field(default_factory=list)
    demand_signals: list[DemandSignal] = Field(default_factory=list)
    momentum: list[SkuMomentum] = Field(default_factory=list)
