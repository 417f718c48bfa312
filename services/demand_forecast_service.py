"""
Demand forecasting.

Extrapolates the long-window daily velocity over the horizon,
nudged by the short-window trend within fixed bounds.
"""

from models.growth_simulation import FCAggregate, EngineConfig, DemandForecast
from utils.math_utils import clamp, safe_divide


def forecast_demand(
    aggregate: FCAggregate,
    horizon_days: int,
    config: EngineConfig,
) -> DemandForecast:
    """
    Forecast an FC's demand over the horizon.

    Formula:
        trend_ratio = velocity_7d / velocity   (1 if velocity = 0)
        forecast_velocity = velocity * clamp(trend_ratio, 0.7, 1.3)
        forecast_demand = forecast_velocity * horizon_days
        days_of_cover = on_hand / forecast_velocity   (0 if no velocity)
    """
    if aggregate.velocity > 0:
        trend_ratio = aggregate.velocity_7d / aggregate.velocity
    else:
        trend_ratio = 1.0

    bounded_ratio = clamp(trend_ratio, config.trend_ratio_min, config.trend_ratio_max)
    forecast_velocity = aggregate.velocity * bounded_ratio

    return DemandForecast(
        trend_ratio=bounded_ratio,
        forecast_velocity=forecast_velocity,
        forecast_demand=forecast_velocity * horizon_days,
        days_of_cover_current=safe_divide(aggregate.on_hand_qty, forecast_velocity),
    )
