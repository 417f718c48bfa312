"""
Unit tests for the growth simulation pipeline and service.

The reference portfolio has three fashion family codes:
    DRS01  manual hero, 5/day, 50 on hand, 55% margin
    TOP01  2/day, nothing on hand
    SKT01  0.2/day, 40 on hand
"""

import asyncio
import pytest
from unittest.mock import patch

from models.growth_inputs import SimulationInputs, SkuMomentum
from models.growth_simulation import (
    SimulationParams,
    EngineConfig,
    MoverSegment,
    RiskType,
    RiskSeverity,
    ConstraintType,
)
from services.growth_simulation_service import (
    run_simulation,
    select_hero_candidates,
    calculate_hero_gap,
    GrowthSimulationService,
)
from services.simulation_messages import get_message
from exceptions import SimulationTimeoutError
from tests.factories import FCSpec, SimulationInputsFactory, FCResultFactory


@pytest.fixture
def portfolio_specs():
    return [
        FCSpec("DRS01", "Đầm maxi", velocity=5, on_hand=50, price=100_000, cogs=45_000,
               hero=True, sizes=["S", "M"]),
        FCSpec("TOP01", "Áo thun", velocity=2, on_hand=0, trend="up"),
        FCSpec("SKT01", "Chân váy", velocity=0.2, on_hand=40),
    ]


@pytest.fixture
def inputs(portfolio_specs):
    return SimulationInputsFactory.portfolio(
        portfolio_specs,
        momentum=[SkuMomentum(sku="DRS01-M", recent_qty=12, prior_qty=8)],
    )


@pytest.fixture
def params():
    return SimulationParams(growth_pct=20, horizon_months=2)


def by_code(response):
    return {d.fc_code: d for d in response.simulation.details}


class TestRunSimulation:
    """End-to-end pipeline on the reference portfolio."""

    def test_hero_plan_after_cash_recovery(self, inputs, params):
        response = run_simulation(inputs, params)

        hero = by_code(response)["DRS01"]
        assert hero.is_hero is True
        assert hero.is_hero_manual is True
        assert hero.segment == MoverSegment.NORMAL
        assert hero.hero_score == 77
        assert hero.required_supply == pytest.approx(645)
        assert hero.production_qty == 400
        assert hero.days_of_cover_after_production == 90
        assert hero.cash_required == 18_000_000

    def test_non_hero_plan(self, inputs, params):
        top = by_code(run_simulation(inputs, params))["TOP01"]

        # 120 demand + 18 safety + 30 days * 2/day
        assert top.target_days_of_cover == 30
        assert top.production_qty == 198
        assert top.days_of_cover_after_production == 99

    def test_slow_mover_blocked_and_flagged(self, inputs, params):
        slow = by_code(run_simulation(inputs, params))["SKT01"]

        assert slow.segment == MoverSegment.SLOW
        assert slow.is_hero is False
        assert slow.production_qty == 0
        assert slow.cash_required == 0

        flags = {f.type: f.severity for f in slow.risk_flags}
        assert flags == {
            RiskType.OVERSTOCK: RiskSeverity.HIGH,
            RiskType.SLOW_MOVER_HIGH_STOCK: RiskSeverity.MEDIUM,
        }
        assert get_message("reason_blocked_slow") in slow.reason

    def test_stockout_flags(self, inputs, params):
        details = by_code(run_simulation(inputs, params))

        assert [f.severity for f in details["DRS01"].risk_flags] == [RiskSeverity.HIGH]
        assert [f.severity for f in details["TOP01"].risk_flags] == [RiskSeverity.CRITICAL]

    def test_baseline_and_totals(self, inputs, params):
        simulation = run_simulation(inputs, params).simulation

        assert simulation.current_revenue == 60_000_000
        assert simulation.target_revenue == pytest.approx(72_000_000)
        assert simulation.gap_revenue == pytest.approx(12_000_000)
        assert simulation.total_production_units == 598
        assert simulation.total_cash_required == 37_800_000
        assert simulation.hero_count == 1
        assert simulation.hero_revenue_share_pct == pytest.approx(20)

    def test_details_sorted_by_production(self, inputs, params):
        simulation = run_simulation(inputs, params).simulation

        assert [d.fc_code for d in simulation.details] == ["DRS01", "TOP01", "SKT01"]

    def test_portfolio_risks(self, inputs, params):
        simulation = run_simulation(inputs, params).simulation

        assert [(r.type, r.severity) for r in simulation.top_risks] == [
            (RiskType.CONCENTRATION, RiskSeverity.CRITICAL),
            (RiskType.STOCKOUT, RiskSeverity.CRITICAL),
            (RiskType.OVERSTOCK, RiskSeverity.HIGH),
            (RiskType.SLOW_MOVER_HIGH_STOCK, RiskSeverity.MEDIUM),
        ]
        # 40 * 2/3 + 30 * 1/3 + 30
        assert simulation.risk_score == 67

    def test_reasons_filled(self, inputs, params):
        details = by_code(run_simulation(inputs, params))

        assert details["DRS01"].reason.startswith(get_message("reason_fast", velocity=5))
        assert get_message("reason_hero_manual") in details["DRS01"].reason
        assert get_message("reason_trend_up") in details["TOP01"].reason

    def test_growth_shape_included(self, inputs, params):
        shape = run_simulation(inputs, params).growth_shape

        assert {c.category for c in shape.categories} == {"Đầm/Dresses", "Áo/Tops", "Váy/Skirts"}
        assert {s.size for s in shape.size_shifts} == {"S", "M"}

    def test_cash_cap_respected(self, inputs):
        params = SimulationParams(growth_pct=20, horizon_months=2, cash_cap=20_000_000)

        simulation = run_simulation(inputs, params).simulation
        details = {d.fc_code: d for d in simulation.details}

        assert simulation.total_cash_required <= 20_000_000
        assert details["DRS01"].production_qty == 400
        assert details["TOP01"].production_qty == 0
        assert details["TOP01"].constrained_by == ConstraintType.CASH
        assert get_message("reason_constrained_cash") in details["TOP01"].reason

    def test_capacity_cap_respected(self, inputs):
        params = SimulationParams(growth_pct=20, horizon_months=2, capacity_cap=250)

        simulation = run_simulation(inputs, params).simulation

        assert simulation.total_production_units <= 500
        assert simulation.total_production_units == 400

    def test_idempotent(self, inputs, params):
        first = run_simulation(inputs, params)
        second = run_simulation(inputs, params)

        assert first.model_dump() == second.model_dump()

    def test_invariants(self, inputs, params):
        simulation = run_simulation(inputs, params).simulation

        for d in simulation.details:
            assert d.production_qty >= 0
            assert d.cash_required == d.production_qty * d.unit_cogs
            assert 0 <= d.hero_score <= 100
            if d.segment == MoverSegment.SLOW and not d.is_hero:
                assert d.production_qty == 0
        assert 0 <= simulation.risk_score <= 100

    def test_negative_growth(self, inputs):
        params = SimulationParams(growth_pct=-10, horizon_months=2)

        simulation = run_simulation(inputs, params).simulation

        assert simulation.gap_revenue < 0
        assert all(d.growth_contribution_pct == 0 for d in simulation.details)
        assert simulation.hero_gap.recoverability_pct == 100


class TestInsufficientData:
    """Returns None instead of raising."""

    def test_no_fashion_family_codes(self, inputs, params):
        unmapped = inputs.model_copy(update={"sku_fc_mappings": []})
        assert run_simulation(unmapped, params) is None

    def test_no_revenue_history(self, inputs, params):
        assert run_simulation(inputs.model_copy(update={"revenue_facts": []}), params) is None

    def test_no_sku_rows(self, inputs, params):
        assert run_simulation(inputs.model_copy(update={"sku_summaries": []}), params) is None

    def test_empty_inputs(self, params):
        assert run_simulation(SimulationInputs(), params) is None


class TestHeroGap:
    """capacity = sum min(on_hand + qty, demand) * unit price; need = 60% of gap."""

    def test_candidates(self):
        config = EngineConfig()
        results = [
            FCResultFactory.create(fc_code="MANUAL", is_hero=True, hero_score=95),
            FCResultFactory.create(fc_code="LOW", hero_score=49),
            FCResultFactory.create(fc_code="A", hero_score=60),
            FCResultFactory.create(fc_code="B", hero_score=85),
        ]

        candidates = select_hero_candidates(results, config)

        assert [c.fc_code for c in candidates] == ["B", "A"]

    def test_gap_and_hero_count(self):
        config = EngineConfig()
        hero = FCResultFactory.create(
            is_hero=True, forecast_demand=100, on_hand_qty=20, production_qty=30, unit_price=100_000
        )
        candidate = FCResultFactory.create(hero_score=70, production_qty=10, unit_price=100_000)

        gap = calculate_hero_gap([hero, candidate], [candidate], 20_000_000, config)

        assert gap.hero_capacity == 5_000_000
        assert gap.hero_need == 12_000_000
        assert gap.gap == 7_000_000
        assert gap.recoverability_pct == pytest.approx(5 / 12 * 100)
        # ceil(7,000,000 / 1,000,000)
        assert gap.hero_count_gap == 7
        assert gap.recoverability_message == get_message("recoverability_gap", count=7)

    def test_capacity_limited_by_demand(self):
        config = EngineConfig()
        hero = FCResultFactory.create(
            is_hero=True, forecast_demand=10, on_hand_qty=500, unit_price=100_000
        )

        gap = calculate_hero_gap([hero], [], 1_000_000, config)

        assert gap.hero_capacity == 1_000_000
        assert gap.gap == 0
        assert gap.recoverability_pct == 100
        assert gap.recoverability_message == get_message("recoverability_ok", pct=100)


class FakeDataService:
    """Returns fixed inputs, optionally after a delay."""

    def __init__(self, inputs, delay: float = 0):
        self.inputs = inputs
        self.delay = delay
        self.tenants = []

    async def fetch_inputs(self, tenant_id, now=None):
        self.tenants.append(tenant_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.inputs


class TestGrowthSimulationService:
    """Fetch, run off the event loop, fail closed on timeout."""

    def make_service(self, data_service):
        with patch(
            "services.growth_simulation_service.get_growth_data_service",
            return_value=data_service,
        ):
            return GrowthSimulationService()

    def test_simulate(self, inputs, params):
        data_service = FakeDataService(inputs)
        service = self.make_service(data_service)

        response = asyncio.run(service.simulate("tenant-1", params))

        assert data_service.tenants == ["tenant-1"]
        assert response.simulation.total_production_units == 598

    def test_insufficient_data_returns_none(self, params):
        service = self.make_service(FakeDataService(SimulationInputs()))

        assert asyncio.run(service.simulate("tenant-1", params)) is None

    def test_timeout_fails_closed(self, inputs, params):
        service = self.make_service(FakeDataService(inputs, delay=1))
        service.timeout_seconds = 0.01

        with pytest.raises(SimulationTimeoutError) as exc_info:
            asyncio.run(service.simulate("tenant-1", params))

        assert exc_info.value.status_code == 504
        assert exc_info.value.details["tenant_id"] == "tenant-1"
