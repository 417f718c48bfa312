"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Engine thresholds live in models.growth_simulation.EngineConfig;
this module only covers deployment, data-access and runtime knobs.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (reads across tenants, filtered by tenant_id)"
    )

    # ===================
    # INPUT FETCH LIMITS
    # ===================
    revenue_lookback_days: int = Field(
        default=90,
        ge=7,
        le=365,
        description="Most recent daily revenue facts used for the baseline"
    )
    sku_summary_limit: int = Field(
        default=2000,
        ge=1,
        le=20000,
        description="Top SKUs by revenue pulled from the SKU summary view"
    )
    family_code_limit: int = Field(
        default=2000,
        ge=1,
        le=20000,
        description="Maximum active family codes per tenant"
    )
    sku_mapping_limit: int = Field(
        default=5000,
        ge=1,
        le=50000,
        description="Maximum active SKU → family code mappings"
    )
    inventory_limit: int = Field(
        default=10000,
        ge=1,
        le=100000,
        description="Maximum inventory position rows"
    )
    demand_limit: int = Field(
        default=5000,
        ge=1,
        le=50000,
        description="Maximum demand signal rows"
    )

    # ===================
    # MOMENTUM WINDOWS
    # ===================
    momentum_window_days: int = Field(
        default=30,
        ge=2,
        le=180,
        description="Order history window used for recent-vs-prior momentum"
    )
    momentum_split_days: int = Field(
        default=15,
        ge=1,
        le=90,
        description="Orders newer than this many days count as 'recent'"
    )
    order_page_size: int = Field(
        default=1000,
        ge=100,
        le=1000,
        description="Page size when paginating orders"
    )
    order_item_batch_size: int = Field(
        default=100,
        ge=10,
        le=500,
        description="Order ids per order-items query"
    )

    # ===================
    # SIMULATION RUNTIME
    # ===================
    simulation_timeout_seconds: float = Field(
        default=25.0,
        gt=0,
        le=300,
        description="Budget for one simulation run; exceeding it fails closed"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8080",
        ],
        description="Frontend origins allowed by CORS (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
