"""
Application Settings and Configuration Management

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    app_name: str = "Fishing Advice API"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False)

    # API Configuration
    api_prefix: str = "/api/v1"
    backend_port: int = Field(default=8000, validation_alias="BACKEND_PORT")

    # CORS
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8000",
        ],
        validation_alias="CORS_ORIGINS"
    )

    # Database - PostgreSQL holding reports, diary views and tuned params
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    db_pool_size: int = Field(default=2, ge=1, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=3, ge=0, validation_alias="DB_MAX_OVERFLOW")

    # Per-request timeout enforced by middleware (seconds)
    request_timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="REQUEST_TIMEOUT_SECONDS")

    # Service-to-service API key (guards /metrics)
    internal_api_key: Optional[str] = Field(default=None, validation_alias="INTERNAL_API_KEY")

    # Reserved venue key holding the global-default tuned params
    global_default_venue: str = Field(default="_global_default", validation_alias="GLOBAL_DEFAULT_VENUE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is valid"""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("global_default_venue")
    @classmethod
    def validate_global_default_venue(cls, v: str) -> str:
        """The reserved key must never collide with a blank venue name"""
        if not v.strip():
            raise ValueError("global_default_venue must not be blank")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    @property
    def async_database_url(self) -> Optional[str]:
        """DATABASE_URL rewritten for the asyncpg SQLAlchemy dialect"""
        if not self.database_url:
            return None
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance (FastAPI dependency-injection compatible)."""
    return settings
