"""Configuration management for the Design Manager stage-gate service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# A local .env is optional; real deployments set the variables directly
try:
    load_dotenv()
except (PermissionError, OSError):
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    DESIGN_MANAGER_ENV: str = Field(
        default="dev", description="Environment: dev, staging, prod, test"
    )

    # Persistence
    DESIGN_ITEMS_TABLE: str = Field(
        default="design_items", description="Supabase table holding design items"
    )

    # Stage timeline
    DEFAULT_STAGE_DURATION_DAYS: int = Field(
        default=3,
        ge=0,
        description="Expected days in a stage when the stage has no configured duration",
    )

    # Readiness badge thresholds
    READINESS_GREEN_THRESHOLD: int = Field(
        default=80, ge=0, le=100, description="Readiness at or above this is green"
    )
    READINESS_AMBER_THRESHOLD: int = Field(
        default=50, ge=0, le=100, description="Readiness at or above this is amber"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
