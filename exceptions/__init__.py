"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    BadRequestError,
    DatabaseError,

    # Growth simulator
    MissingTenantError,
    MissingGrowthPctError,
    InvalidSimulationParamsError,
    SimulationInputError,
    SimulationTimeoutError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "BadRequestError",
    "DatabaseError",

    # Growth simulator
    "MissingTenantError",
    "MissingGrowthPctError",
    "InvalidSimulationParamsError",
    "SimulationInputError",
    "SimulationTimeoutError",
]
