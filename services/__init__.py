"""
Business logic services.

Each module handles one stage of the growth simulation pipeline;
growth_simulation_service composes them.
"""

from services.growth_data_service import GrowthDataService, get_growth_data_service
from services.growth_simulation_service import (
    GrowthSimulationService,
    get_growth_simulation_service,
    run_simulation,
)

__all__ = [
    "GrowthDataService",
    "get_growth_data_service",
    "GrowthSimulationService",
    "get_growth_simulation_service",
    "run_simulation",
]
