"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.growth_simulator import router as growth_simulator_router

__all__ = [
    "growth_simulator_router",
]
