"""
Growth shape schemas.

Describes where growth should be allocated across categories,
sizes and price bands, as opposed to per-family-code allocation.
"""

from pydantic import Field
from enum import Enum

from models.base import BaseSchema


class EfficiencyLabel(str, Enum):
    """Efficiency bucket of a category or price band."""
    HIGH = "CAO"
    MEDIUM = "TRUNG BÌNH"
    LOW = "THẤP"


class GrowthDirection(str, Enum):
    """Recommendation for a category."""
    EXPAND = "expand"
    HOLD = "hold"
    AVOID = "avoid"


class SizeDirection(str, Enum):
    """Whether a size is gaining or losing share of velocity."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class GrowthShapeCategory(BaseSchema):
    """Efficiency and momentum of one merchandising category."""

    category: str
    fc_count: int = Field(..., ge=1)
    total_velocity: float
    avg_velocity: float
    momentum_pct: float
    avg_margin_pct: float
    avg_days_of_cover: float
    overstock_ratio: float = Field(..., ge=0, le=1)
    revenue_share: float
    efficiency_score: int = Field(..., ge=0, le=100)
    efficiency_label: EfficiencyLabel
    direction: GrowthDirection
    reason: str


class SizeShift(BaseSchema):
    """Share of weighted velocity carried by one size."""

    size: str
    total_velocity: float
    velocity_share: float
    delta_pct: float = Field(..., description="Share minus equal share, in points")
    direction: SizeDirection
    direction_label: str


class PriceBandShape(BaseSchema):
    """Performance of family codes within one unit-price band."""

    band: str
    fc_count: int = Field(..., ge=1)
    avg_velocity: float
    avg_margin_pct: float
    momentum_pct: float
    efficiency_score: int = Field(..., ge=0, le=100)
    efficiency_label: EfficiencyLabel


class GrowthShape(BaseSchema):
    """Category, size and price-band pattern of recommended growth."""

    expand_categories: list[GrowthShapeCategory]
    avoid_categories: list[GrowthShapeCategory]
    categories: list[GrowthShapeCategory]
    size_shifts: list[SizeShift]
    price_bands: list[PriceBandShape]
    gravity_summary: str
    shape_statement: str
