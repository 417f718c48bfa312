"""
Growth simulator data access.

Reads every input collection for one tenant from Supabase. Each
query filters on tenant_id; any failed query aborts the simulation
with SimulationInputError (no partial inputs).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import asyncio
import time
import structlog

from config import get_supabase_client, settings
from models.growth_inputs import (
    RevenueFact,
    SkuSummary,
    FamilyCode,
    SkuFcMapping,
    InventoryPosition,
    DemandSignal,
    SkuMomentum,
    SimulationInputs,
)
from exceptions import SimulationInputError

logger = structlog.get_logger(__name__)

SKU_SUMMARY_COLUMNS = (
    "sku, product_name, category, total_revenue, total_quantity, total_cogs, "
    "gross_profit, margin_percent, avg_unit_price, avg_unit_cogs"
)


def _parse_timestamp(value: str) -> datetime:
    """Parse a Supabase timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GrowthDataService:
    """
    Tenant-scoped reads for the growth simulator.

    Every getter is synchronous (the Supabase client is); fetch_inputs
    runs them concurrently in worker threads.
    """

    def __init__(self):
        self.db = get_supabase_client()

    # ===================
    # COLLECTIONS
    # ===================

    def get_revenue_facts(self, tenant_id: str) -> list[RevenueFact]:
        """Latest daily NET_REVENUE totals (most recent first)."""
        try:
            result = (
                self.db.table("kpi_facts_daily")
                .select("metric_value")
                .eq("tenant_id", tenant_id)
                .eq("metric_code", "NET_REVENUE")
                .eq("dimension_type", "total")
                .order("grain_date", desc=True)
                .limit(settings.revenue_lookback_days)
                .execute()
            )
            return [RevenueFact(**row) for row in result.data]

        except Exception as e:
            logger.error("get_revenue_facts_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("kpi_facts_daily", str(e))

    def get_sku_summaries(self, tenant_id: str) -> list[SkuSummary]:
        """Top SKUs by lifetime revenue."""
        try:
            result = (
                self.db.table("fdp_sku_summary")
                .select(SKU_SUMMARY_COLUMNS)
                .eq("tenant_id", tenant_id)
                .order("total_revenue", desc=True)
                .limit(settings.sku_summary_limit)
                .execute()
            )
            return [SkuSummary(**row) for row in result.data]

        except Exception as e:
            logger.error("get_sku_summaries_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("fdp_sku_summary", str(e))

    def get_family_codes(self, tenant_id: str) -> list[FamilyCode]:
        """Active family code registry."""
        try:
            result = (
                self.db.table("inv_family_codes")
                .select("id, fc_code, fc_name, is_core_hero")
                .eq("tenant_id", tenant_id)
                .eq("is_active", True)
                .limit(settings.family_code_limit)
                .execute()
            )
            return [FamilyCode(**row) for row in result.data]

        except Exception as e:
            logger.error("get_family_codes_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("inv_family_codes", str(e))

    def get_sku_fc_mappings(self, tenant_id: str) -> list[SkuFcMapping]:
        """Active SKU → family code links."""
        try:
            result = (
                self.db.table("inv_sku_fc_mapping")
                .select("sku, fc_id")
                .eq("tenant_id", tenant_id)
                .eq("is_active", True)
                .limit(settings.sku_mapping_limit)
                .execute()
            )
            return [SkuFcMapping(**row) for row in result.data]

        except Exception as e:
            logger.error("get_sku_fc_mappings_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("inv_sku_fc_mapping", str(e))

    def get_inventory_positions(self, tenant_id: str) -> list[InventoryPosition]:
        """On-hand rows per family code and location."""
        try:
            result = (
                self.db.table("inv_state_positions")
                .select("fc_id, on_hand")
                .eq("tenant_id", tenant_id)
                .limit(settings.inventory_limit)
                .execute()
            )
            return [InventoryPosition(**row) for row in result.data]

        except Exception as e:
            logger.error("get_inventory_positions_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("inv_state_positions", str(e))

    def get_demand_signals(self, tenant_id: str) -> list[DemandSignal]:
        """Velocity and trend rows per family code."""
        try:
            result = (
                self.db.table("inv_state_demand")
                .select("fc_id, sales_velocity, avg_daily_sales, trend")
                .eq("tenant_id", tenant_id)
                .limit(settings.demand_limit)
                .execute()
            )
            return [DemandSignal(**row) for row in result.data]

        except Exception as e:
            logger.error("get_demand_signals_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("inv_state_demand", str(e))

    # ===================
    # MOMENTUM
    # ===================

    def get_recent_orders(self, tenant_id: str, since: datetime) -> list[dict]:
        """All orders placed since the given instant, paged."""
        page_size = settings.order_page_size
        orders: list[dict] = []
        start = 0

        try:
            while True:
                result = (
                    self.db.table("cdp_orders")
                    .select("id, order_at")
                    .eq("tenant_id", tenant_id)
                    .gte("order_at", since.isoformat())
                    .range(start, start + page_size - 1)
                    .execute()
                )
                page = result.data or []
                orders.extend(page)
                if len(page) < page_size:
                    break
                start += page_size

            return orders

        except Exception as e:
            logger.error("get_recent_orders_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("cdp_orders", str(e))

    def get_order_items(self, tenant_id: str, order_ids: list[str]) -> list[dict]:
        """
        Line items for the given orders, queried in batches of order ids.

        Items carry no tenant column; scoping comes from the order ids.
        """
        batch_size = settings.order_item_batch_size
        items: list[dict] = []

        try:
            for i in range(0, len(order_ids), batch_size):
                batch = order_ids[i:i + batch_size]
                result = (
                    self.db.table("cdp_order_items")
                    .select("sku, qty, order_id")
                    .in_("order_id", batch)
                    .execute()
                )
                items.extend(result.data or [])

            return items

        except Exception as e:
            logger.error("get_order_items_failed", tenant_id=tenant_id, error=str(e))
            raise SimulationInputError("cdp_order_items", str(e))

    def get_sku_momentum(self, tenant_id: str, now: Optional[datetime] = None) -> list[SkuMomentum]:
        """
        Units sold per SKU in the recent vs. prior half of the order window.

        Window is the last 30 days before now; items from orders in the
        last 15 days count as recent, the rest as prior.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=settings.momentum_window_days)
        split = now - timedelta(days=settings.momentum_split_days)

        orders = self.get_recent_orders(tenant_id, since)
        if not orders:
            return []

        order_dates = {
            order["id"]: _parse_timestamp(order["order_at"])
            for order in orders
            if order.get("id") and order.get("order_at")
        }
        items = self.get_order_items(tenant_id, list(order_dates.keys()))

        momentum: dict[str, SkuMomentum] = {}
        for item in items:
            sku = item.get("sku")
            ordered_at = order_dates.get(item.get("order_id"))
            if not sku or ordered_at is None:
                continue
            entry = momentum.setdefault(sku, SkuMomentum(sku=sku))
            qty = item.get("qty") or 0
            if ordered_at >= split:
                entry.recent_qty += qty
            else:
                entry.prior_qty += qty

        return list(momentum.values())

    # ===================
    # ALL INPUTS
    # ===================

    async def fetch_inputs(self, tenant_id: str, now: Optional[datetime] = None) -> SimulationInputs:
        """
        Fetch every simulation input for a tenant concurrently.

        Raises:
            SimulationInputError: If any collection fails to load
        """
        started = time.perf_counter()

        (
            revenue_facts,
            sku_summaries,
            family_codes,
            sku_fc_mappings,
            inventory_positions,
            demand_signals,
            momentum,
        ) = await asyncio.gather(
            asyncio.to_thread(self.get_revenue_facts, tenant_id),
            asyncio.to_thread(self.get_sku_summaries, tenant_id),
            asyncio.to_thread(self.get_family_codes, tenant_id),
            asyncio.to_thread(self.get_sku_fc_mappings, tenant_id),
            asyncio.to_thread(self.get_inventory_positions, tenant_id),
            asyncio.to_thread(self.get_demand_signals, tenant_id),
            asyncio.to_thread(self.get_sku_momentum, tenant_id, now),
        )

        logger.info(
            "growth_inputs_fetched",
            tenant_id=tenant_id,
            revenue_days=len(revenue_facts),
            skus=len(sku_summaries),
            family_codes=len(family_codes),
            momentum_skus=len(momentum),
            elapsed_ms=round((time.perf_counter() - started) * 1000),
        )

        return SimulationInputs(
            revenue_facts=revenue_facts,
            sku_summaries=sku_summaries,
            family_codes=family_codes,
            sku_fc_mappings=sku_fc_mappings,
            inventory_positions=inventory_positions,
            demand_signals=demand_signals,
            momentum=momentum,
        )


# Singleton instance
_growth_data_service: Optional[GrowthDataService] = None


def get_growth_data_service() -> GrowthDataService:
    """Get or create GrowthDataService singleton."""
    global _growth_data_service
    if _growth_data_service is None:
        _growth_data_service = GrowthDataService()
    return _growth_data_service
