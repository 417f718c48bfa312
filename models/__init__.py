"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
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
from models.growth_simulation import (
    MoverSegment,
    RiskType,
    RiskSeverity,
    ConstraintType,
    SimulationParams,
    EngineConfig,
    BaselineTargets,
    FCAggregate,
    PortfolioDistribution,
    DemandForecast,
    HeroScore,
    RiskFlag,
    FCResult,
    HeroGap,
    MetricPair,
    BeforeAfter,
    SimulationSummary,
    GrowthSimulationResponse,
)
from models.growth_shape import (
    EfficiencyLabel,
    GrowthDirection,
    SizeDirection,
    GrowthShapeCategory,
    SizeShift,
    PriceBandShape,
    GrowthShape,
)

__all__ = [
    # Base
    "BaseSchema",
    # Inputs
    "RevenueFact",
    "SkuSummary",
    "FamilyCode",
    "SkuFcMapping",
    "InventoryPosition",
    "DemandSignal",
    "SkuMomentum",
    "SimulationInputs",
    # Simulation
    "MoverSegment",
    "RiskType",
    "RiskSeverity",
    "ConstraintType",
    "SimulationParams",
    "EngineConfig",
    "BaselineTargets",
    "FCAggregate",
    "PortfolioDistribution",
    "DemandForecast",
    "HeroScore",
    "RiskFlag",
    "FCResult",
    "HeroGap",
    "MetricPair",
    "BeforeAfter",
    "SimulationSummary",
    "GrowthSimulationResponse",
    # Growth shape
    "EfficiencyLabel",
    "GrowthDirection",
    "SizeDirection",
    "GrowthShapeCategory",
    "SizeShift",
    "PriceBandShape",
    "GrowthShape",
]
