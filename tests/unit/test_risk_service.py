"""
Unit tests for risk detection, the portfolio risk summary and the risk score.
"""

import pytest

from models.growth_simulation import (
    SimulationParams,
    EngineConfig,
    MoverSegment,
    RiskType,
    RiskSeverity,
)
from services.risk_service import (
    detect_stockout,
    detect_overstock,
    detect_slow_mover,
    detect_fc_risks,
    attach_risk_flags,
    concentration_share,
    detect_concentration,
    summarize_risks,
    calculate_risk_score,
)
from services.simulation_messages import get_message
from tests.factories import FCResultFactory, risk_flag


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def params():
    return SimulationParams(growth_pct=20)


class TestDetectStockout:
    """on_hand / forecast_velocity < 14 days; critical when nothing on hand."""

    def test_critical_when_empty(self, config):
        fc = FCResultFactory.create(velocity=2, on_hand_qty=0)

        flag = detect_stockout(fc, config)

        assert flag.type == RiskType.STOCKOUT
        assert flag.severity == RiskSeverity.CRITICAL
        assert flag.detail == get_message("stockout_detail", days=0)

    def test_high_when_low_cover(self, config):
        fc = FCResultFactory.create(velocity=2, on_hand_qty=20)

        flag = detect_stockout(fc, config)

        assert flag.severity == RiskSeverity.HIGH
        assert flag.detail == get_message("stockout_detail", days=10)

    def test_hero_suggestion(self, config):
        fc = FCResultFactory.create(is_hero=True, velocity=2, on_hand_qty=5)
        assert detect_stockout(fc, config).suggestion == get_message("stockout_suggestion_hero")

    def test_exactly_14_days_not_flagged(self, config):
        fc = FCResultFactory.create(velocity=2, on_hand_qty=28)
        assert detect_stockout(fc, config) is None

    def test_no_velocity_not_flagged(self, config):
        fc = FCResultFactory.create(velocity=0, on_hand_qty=0)
        assert detect_stockout(fc, config) is None


class TestDetectOverstock:
    """on_hand > forecast_demand * threshold; high above 2x demand."""

    def test_medium(self, params, config):
        fc = FCResultFactory.create(forecast_demand=100, on_hand_qty=180)

        flag = detect_overstock(fc, params, config)

        assert flag.severity == RiskSeverity.MEDIUM
        assert flag.suggestion == get_message("overstock_suggestion")

    def test_high_for_slow_mover(self, params, config):
        fc = FCResultFactory.create(
            segment=MoverSegment.SLOW, velocity=0.2, forecast_demand=18, on_hand_qty=40
        )

        flag = detect_overstock(fc, params, config)

        assert flag.severity == RiskSeverity.HIGH
        assert flag.suggestion == get_message("overstock_suggestion_slow")

    def test_at_threshold_not_flagged(self, params, config):
        fc = FCResultFactory.create(forecast_demand=100, on_hand_qty=150)
        assert detect_overstock(fc, params, config) is None

    def test_threshold_from_params(self, config):
        fc = FCResultFactory.create(forecast_demand=100, on_hand_qty=130)
        params = SimulationParams(growth_pct=20, overstock_threshold=1.2)
        assert detect_overstock(fc, params, config) is not None

    def test_no_demand_not_flagged(self, params, config):
        fc = FCResultFactory.create(velocity=0, forecast_demand=0, on_hand_qty=500)
        assert detect_overstock(fc, params, config) is None


class TestDetectSlowMover:
    """Slow segment with stock; high below 0.2 units/day."""

    def test_boundary_velocity_is_medium(self, config):
        fc = FCResultFactory.create(segment=MoverSegment.SLOW, velocity=0.2, on_hand_qty=40)

        flag = detect_slow_mover(fc, config)

        assert flag.type == RiskType.SLOW_MOVER_HIGH_STOCK
        assert flag.severity == RiskSeverity.MEDIUM
        assert flag.suggestion == get_message("slow_mover_suggestion_blocked")

    def test_very_slow_is_high(self, config):
        fc = FCResultFactory.create(segment=MoverSegment.SLOW, velocity=0.1, on_hand_qty=40)
        assert detect_slow_mover(fc, config).severity == RiskSeverity.HIGH

    def test_producing_slow_hero_gets_reduce_suggestion(self, config):
        fc = FCResultFactory.create(
            is_hero=True, segment=MoverSegment.SLOW, velocity=0.3, on_hand_qty=5, production_qty=4
        )
        assert detect_slow_mover(fc, config).suggestion == get_message("slow_mover_suggestion")

    def test_without_stock_not_flagged(self, config):
        fc = FCResultFactory.create(segment=MoverSegment.SLOW, velocity=0.1, on_hand_qty=0)
        assert detect_slow_mover(fc, config) is None

    def test_normal_segment_not_flagged(self, config):
        fc = FCResultFactory.create(segment=MoverSegment.NORMAL, on_hand_qty=400)
        assert detect_slow_mover(fc, config) is None


class TestDetectFcRisks:
    def test_rules_are_independent(self, params, config):
        fc = FCResultFactory.create(
            segment=MoverSegment.SLOW, velocity=0.2, forecast_demand=18, on_hand_qty=40
        )

        types = [flag.type for flag in detect_fc_risks(fc, params, config)]

        assert types == [RiskType.OVERSTOCK, RiskType.SLOW_MOVER_HIGH_STOCK]

    def test_attach_does_not_mutate(self, params, config):
        fc = FCResultFactory.create(velocity=2, on_hand_qty=0)

        [flagged] = attach_risk_flags([fc], params, config)

        assert [f.type for f in flagged.risk_flags] == [RiskType.STOCKOUT]
        assert fc.risk_flags == []


class TestConcentration:
    """First 3 producers' share of planned units in priority order; >50% high, >70% critical."""

    def test_share_follows_priority_order(self, config):
        results = [FCResultFactory.create(production_qty=q) for q in (10, 40, 10, 30, 10, 0)]

        # (10 + 40 + 10) / 100
        assert concentration_share(results, config) == pytest.approx(0.6)

    def test_small_hero_batches_ahead_of_large_runs(self, config):
        heroes = [FCResultFactory.create(is_hero=True, production_qty=10) for _ in range(3)]
        others = [FCResultFactory.create(production_qty=100) for _ in range(4)]

        # 30 / 430
        assert concentration_share(heroes + others, config) == pytest.approx(30 / 430)
        assert detect_concentration(heroes + others, config) is None

    def test_zero_quantity_fcs_skipped(self, config):
        results = [FCResultFactory.create(production_qty=q) for q in (0, 50, 0, 10, 10, 30)]

        # (50 + 10 + 10) / 100
        assert concentration_share(results, config) == pytest.approx(0.7)

    def test_critical(self, config):
        results = [FCResultFactory.create(production_qty=q) for q in (80, 10, 5, 5)]

        flag = detect_concentration(results, config)

        assert flag.type == RiskType.CONCENTRATION
        assert flag.severity == RiskSeverity.CRITICAL

    def test_high(self, config):
        results = [FCResultFactory.create(production_qty=q) for q in (20, 20, 20, 20, 20)]

        flag = detect_concentration(results, config)

        # 60%
        assert flag.severity == RiskSeverity.HIGH

    def test_exactly_half_not_flagged(self, config):
        results = [FCResultFactory.create(production_qty=10) for _ in range(6)]

        assert concentration_share(results, config) == pytest.approx(0.5)
        assert detect_concentration(results, config) is None

    def test_no_production(self, config):
        results = [FCResultFactory.create(production_qty=0)]

        assert concentration_share(results, config) == 0
        assert detect_concentration(results, config) is None


class TestSummarizeRisks:
    """Grouped by type, concentration first, stable severity order, top 10."""

    def test_grouping_and_examples(self, config):
        results = [
            FCResultFactory.create(
                fc_name=f"Đầm {i}",
                on_hand_qty=10,
                risk_flags=[risk_flag(RiskType.OVERSTOCK, RiskSeverity.MEDIUM)],
            )
            for i in range(5)
        ]
        results[3] = results[3].model_copy(update={
            "risk_flags": [risk_flag(RiskType.OVERSTOCK, RiskSeverity.HIGH)],
        })

        [summary] = summarize_risks(results, None, config)

        assert summary.type == RiskType.OVERSTOCK
        assert summary.fc_count == 5
        assert summary.severity == RiskSeverity.HIGH
        assert summary.examples == ["Đầm 0", "Đầm 1", "Đầm 2"]
        assert summary.affected_on_hand_qty == 50
        assert summary.detail == get_message("summary_overstock_detail", count=5)
        assert summary.suggestion.endswith(get_message("examples_more", more=2))

    def test_concentration_leads_on_severity_ties(self, config):
        concentration = risk_flag(RiskType.CONCENTRATION, RiskSeverity.HIGH)
        results = [
            FCResultFactory.create(risk_flags=[risk_flag(RiskType.STOCKOUT, RiskSeverity.HIGH)]),
        ]

        summary = summarize_risks(results, concentration, config)

        assert [s.type for s in summary] == [RiskType.CONCENTRATION, RiskType.STOCKOUT]

    def test_sorted_by_severity(self, config):
        concentration = risk_flag(RiskType.CONCENTRATION, RiskSeverity.HIGH)
        results = [
            FCResultFactory.create(risk_flags=[
                risk_flag(RiskType.SLOW_MOVER_HIGH_STOCK, RiskSeverity.MEDIUM),
                risk_flag(RiskType.STOCKOUT, RiskSeverity.CRITICAL),
            ]),
        ]

        summary = summarize_risks(results, concentration, config)

        assert [s.severity for s in summary] == [
            RiskSeverity.CRITICAL,
            RiskSeverity.HIGH,
            RiskSeverity.MEDIUM,
        ]

    def test_no_flags(self, config):
        assert summarize_risks([FCResultFactory.create()], None, config) == []


class TestRiskScore:
    """40 * stockout ratio + 30 * overstock ratio + 30 if concentrated."""

    def test_score(self, config):
        results = [
            FCResultFactory.create(risk_flags=[risk_flag(RiskType.STOCKOUT)]),
            FCResultFactory.create(risk_flags=[risk_flag(RiskType.OVERSTOCK)]),
            FCResultFactory.create(),
            FCResultFactory.create(),
        ]

        # 40 * 0.25 + 30 * 0.25 = 17.5 → 18
        assert calculate_risk_score(results, False, config) == 18
        assert calculate_risk_score(results, True, config) == 48

    def test_capped_at_100(self):
        config = EngineConfig(risk_weight_concentration=90)
        results = [FCResultFactory.create(risk_flags=[risk_flag(RiskType.STOCKOUT)])]

        assert calculate_risk_score(results, True, config) == 100

    def test_empty_portfolio(self, config):
        assert calculate_risk_score([], False, config) == 0
