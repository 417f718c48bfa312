"""
Custom exception classes for the application.

All errors carry a stable code and an HTTP status so routes can
return the standard error envelope.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MISSING_GROWTH_PCT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class BadRequestError(AppError):
    """Request is missing required context (400)."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# SIMULATION ERRORS
# ===================

class MissingTenantError(BadRequestError):
    """No tenant scope supplied with the request."""

    def __init__(self):
        super().__init__(
            code="MISSING_TENANT",
            message="No active tenant: X-Tenant-ID header is required",
        )


class MissingGrowthPctError(ValidationError):
    """growth_pct was not supplied."""

    def __init__(self):
        super().__init__(
            code="MISSING_GROWTH_PCT",
            message="Missing params.growthPct",
            details={"field": "growthPct"}
        )


class InvalidSimulationParamsError(ValidationError):
    """Simulation parameters failed validation."""

    def __init__(self, errors: list[dict]):
        super().__init__(
            code="INVALID_SIMULATION_PARAMS",
            message=f"Simulation parameters invalid ({len(errors)} errors)",
            details={"errors": errors}
        )


class SimulationInputError(DatabaseError):
    """One of the simulation input collections failed to load."""

    def __init__(self, source: str, message: str):
        super().__init__(
            operation="select",
            message=message,
            details={"source": source}
        )


class SimulationTimeoutError(AppError):
    """Simulation exceeded its time budget (504)."""

    def __init__(self, tenant_id: str, timeout_seconds: float):
        super().__init__(
            code="SIMULATION_TIMEOUT",
            message=f"Simulation did not finish within {timeout_seconds:g}s",
            status_code=504,
            details={"tenant_id": tenant_id, "timeout_seconds": timeout_seconds}
        )
