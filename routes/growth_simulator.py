"""
Growth simulator API routes.

The caller resolves the tenant and passes it in the X-Tenant-ID
header; this layer performs no authentication.
"""

from fastapi import APIRouter, Body, Header
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from typing import Any, Optional
import structlog

from models.growth_simulation import SimulationParams, EngineConfig, GrowthSimulationResponse
from services.growth_simulation_service import get_growth_simulation_service
from exceptions import (
    AppError,
    MissingTenantError,
    MissingGrowthPctError,
    InvalidSimulationParamsError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# HELPERS
# ===================

def parse_params(body: Optional[dict[str, Any]]) -> SimulationParams:
    """
    Read simulation params from a request body.

    Accepts {"params": {...}} or the params object itself.

    Raises:
        MissingGrowthPctError: growthPct absent or null
        InvalidSimulationParamsError: any field out of range
    """
    raw = body or {}
    payload = raw.get("params") if isinstance(raw.get("params"), dict) else raw

    if payload.get("growthPct") is None and payload.get("growth_pct") is None:
        raise MissingGrowthPctError()

    try:
        return SimulationParams.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in e.errors()
        ]
        raise InvalidSimulationParamsError(errors)


# ===================
# ROUTES
# ===================

@router.post("/run", response_model=Optional[GrowthSimulationResponse])
async def run_growth_simulation(
    body: Optional[dict[str, Any]] = Body(None),
    x_tenant_id: Optional[str] = Header(None, description="Tenant scope for all input queries"),
):
    """
    Run a growth simulation for the tenant.

    Returns null (HTTP 200) when the tenant has insufficient data.

    Raises:
        400: Missing X-Tenant-ID header
        422: Missing growthPct or invalid parameters
        500: An input collection failed to load
        504: Simulation exceeded its time budget
    """
    try:
        if not x_tenant_id or not x_tenant_id.strip():
            raise MissingTenantError()

        params = parse_params(body)

        service = get_growth_simulation_service()
        return await service.simulate(x_tenant_id.strip(), params)

    except Exception as e:
        return handle_error(e)


@router.get("/defaults")
async def get_simulation_defaults():
    """
    Default simulation parameters and engine thresholds.

    Parameter names use the camelCase request contract; growthPct has
    no default and must always be supplied.
    """
    params = {
        to_camel(name): field.default
        for name, field in SimulationParams.model_fields.items()
        if not field.is_required()
    }
    return {
        "params": params,
        "engine": EngineConfig().model_dump(),
    }
