"""
Family code aggregation.

Rolls SKU-level financial summaries up to family codes (FCs) and
attaches each FC's on-hand inventory and peak demand signal.

SKUs without a registry-backed mapping become their own pseudo-FC
and are marked non-fashion; only fashion FCs reach the simulation.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from models.growth_inputs import (
    SimulationInputs,
    FamilyCode,
    SkuFcMapping,
    InventoryPosition,
    DemandSignal,
)
from models.growth_simulation import FCAggregate
from utils.math_utils import safe_divide

logger = structlog.get_logger(__name__)


@dataclass
class DemandPeak:
    """Most active demand row seen for one family code."""
    avg_daily_sales: float
    sales_velocity: float
    trend: Optional[str] = None


@dataclass
class FamilyCodeIndex:
    """Lookups built once from the registry and SKU mappings."""
    code_by_id: dict[str, str] = field(default_factory=dict)
    id_by_code: dict[str, str] = field(default_factory=dict)
    name_by_code: dict[str, str] = field(default_factory=dict)
    hero_ids: set[str] = field(default_factory=set)
    hero_codes: set[str] = field(default_factory=set)
    # Only mappings whose fc_id exists in the registry
    fc_code_by_sku: dict[str, str] = field(default_factory=dict)
    # Every mapping, registry-backed or not
    fc_id_by_sku: dict[str, str] = field(default_factory=dict)

    def display_name(self, fc_code: str) -> str:
        return self.name_by_code.get(fc_code) or fc_code


def build_family_code_index(
    family_codes: list[FamilyCode],
    mappings: list[SkuFcMapping],
) -> FamilyCodeIndex:
    """
    Index the FC registry and resolve SKU → FC links.

    A mapping pointing at an unknown fc_id still records the SKU's
    fc_id (used for inventory and demand joins) but does not make
    the SKU a fashion SKU.
    """
    index = FamilyCodeIndex()

    for fc in family_codes:
        index.code_by_id[fc.id] = fc.fc_code
        index.id_by_code[fc.fc_code] = fc.id
        if fc.fc_name:
            index.name_by_code[fc.fc_code] = fc.fc_name
        if fc.is_core_hero:
            index.hero_ids.add(fc.id)
            index.hero_codes.add(fc.fc_code)

    for mapping in mappings:
        if not mapping.sku or not mapping.fc_id:
            continue
        fc_code = index.code_by_id.get(mapping.fc_id)
        if fc_code:
            index.fc_code_by_sku[mapping.sku] = fc_code
        index.fc_id_by_sku[mapping.sku] = mapping.fc_id

    return index


def sum_on_hand(positions: list[InventoryPosition]) -> dict[str, float]:
    """Total on-hand units per fc_id across all locations."""
    totals: dict[str, float] = {}
    for position in positions:
        if not position.fc_id:
            continue
        totals[position.fc_id] = totals.get(position.fc_id, 0) + (position.on_hand or 0)
    return totals


def pick_demand_peaks(signals: list[DemandSignal]) -> dict[str, DemandPeak]:
    """
    Keep the demand row with the highest avg_daily_sales per fc_id.

    The first row wins ties.
    """
    peaks: dict[str, DemandPeak] = {}
    for signal in signals:
        if not signal.fc_id:
            continue
        avg_daily = signal.avg_daily_sales or 0
        existing = peaks.get(signal.fc_id)
        if existing is None or avg_daily > existing.avg_daily_sales:
            peaks[signal.fc_id] = DemandPeak(
                avg_daily_sales=avg_daily,
                sales_velocity=signal.sales_velocity or 0,
                trend=signal.trend,
            )
    return peaks


def aggregate_family_codes(
    inputs: SimulationInputs,
    index: Optional[FamilyCodeIndex] = None,
) -> list[FCAggregate]:
    """
    Aggregate SKU rows into fashion family codes.

    Revenue, quantity, COGS and gross profit are summed; unit price
    and unit COGS are averaged over contributing SKUs. Output keeps
    the order in which FC codes were first seen.

    Returns:
        Fashion FCAggregates (possibly empty)
    """
    if index is None:
        index = build_family_code_index(inputs.family_codes, inputs.sku_fc_mappings)

    on_hand_by_fc = sum_on_hand(inputs.inventory_positions)
    demand_by_fc = pick_demand_peaks(inputs.demand_signals)

    totals: dict[str, dict] = {}

    for row in inputs.sku_summaries:
        if not row.sku:
            continue

        mapped_code = index.fc_code_by_sku.get(row.sku)
        fc_code = mapped_code or row.sku
        fc_id = index.fc_id_by_sku.get(row.sku) or index.id_by_code.get(fc_code)

        entry = totals.get(fc_code)
        if entry is None:
            entry = {
                "fc_id": None,
                "revenue": 0.0,
                "quantity": 0.0,
                "cogs": 0.0,
                "gross_profit": 0.0,
                "price_sum": 0.0,
                "cogs_sum": 0.0,
                "sku_count": 0,
                "is_fashion": False,
                "is_hero_manual": False,
                "demand": None,
            }
            totals[fc_code] = entry

        entry["revenue"] += row.total_revenue or 0
        entry["quantity"] += row.total_quantity or 0
        entry["cogs"] += row.total_cogs or 0
        entry["gross_profit"] += row.gross_profit or 0
        entry["price_sum"] += row.avg_unit_price or 0
        entry["cogs_sum"] += row.avg_unit_cogs or 0
        entry["sku_count"] += 1

        if mapped_code:
            entry["is_fashion"] = True
        if fc_id:
            entry["fc_id"] = fc_id
        if fc_code in index.hero_codes or (fc_id and fc_id in index.hero_ids):
            entry["is_hero_manual"] = True

        peak = demand_by_fc.get(fc_id) if fc_id else None
        if peak is not None:
            entry["demand"] = peak

    aggregates = []
    for fc_code, entry in totals.items():
        if not entry["is_fashion"]:
            continue

        unit_price = safe_divide(entry["price_sum"], entry["sku_count"])
        unit_cogs = safe_divide(entry["cogs_sum"], entry["sku_count"])
        margin_pct = safe_divide(unit_price - unit_cogs, unit_price) * 100 if unit_price > 0 else 0.0
        peak = entry["demand"]
        fc_id = entry["fc_id"]

        aggregates.append(FCAggregate(
            fc_code=fc_code,
            fc_id=fc_id,
            fc_name=index.display_name(fc_code),
            revenue=entry["revenue"],
            quantity=entry["quantity"],
            cogs=entry["cogs"],
            gross_profit=entry["gross_profit"],
            unit_price=unit_price,
            unit_cogs=unit_cogs,
            margin_pct=margin_pct,
            sku_count=entry["sku_count"],
            is_fashion=True,
            is_hero_manual=entry["is_hero_manual"],
            velocity=peak.avg_daily_sales if peak else 0,
            velocity_7d=peak.sales_velocity if peak else 0,
            trend=peak.trend if peak else None,
            on_hand_qty=on_hand_by_fc.get(fc_id, 0) if fc_id else 0,
        ))

    logger.debug(
        "family_codes_aggregated",
        sku_rows=len(inputs.sku_summaries),
        fc_total=len(totals),
        fashion_fcs=len(aggregates),
    )

    return aggregates
