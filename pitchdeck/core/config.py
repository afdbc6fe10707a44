"""Application configuration using Pydantic settings."""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database Configuration
    DATABASE_URL: str = Field(default="sqlite:///./pitchdeck.db", description="Database connection URL (defaults to a local SQLite file)")

    # Application Configuration
    APP_NAME: str = Field(default="Pitchdeck API", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    # Share links
    FRONTEND_URL: str = Field(default="http://localhost:5173", description="Base URL of the presentation viewer")

    # CORS Configuration
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="Allow CORS credentials")

    # Geolocation
    GEOLOCATION_ENABLED: bool = Field(default=False, description="Resolve missing country/city from the viewer IP")
    GEOLOCATION_TIMEOUT_SECONDS: float = Field(default=5.0, description="Timeout for each geolocation lookup")

    # Bootstrap owner
    BOOTSTRAP_DEFAULT_OWNER: bool = Field(default=True, description="Create the default owner user on startup")
    DEFAULT_OWNER_EMAIL: str = Field(default="owner@pitchdeck.local", description="Email of the default presentation owner")
    DEFAULT_OWNER_NAME: str = Field(default="Sales Team", description="Name of the default presentation owner")
    DEFAULT_OWNER_COMPANY: Optional[str] = Field(default=None, description="Company of the default presentation owner")

    # Content
    DEFAULT_TEMPLATE_SLUG: str = Field(default="sales-proposal", description="Template reference used when none is given")

    # Analytics
    TOP_RANKING_LIMIT: int = Field(default=10, ge=1, description="Entries kept in location and section rankings")
    RECENT_SESSIONS_LIMIT: int = Field(default=50, ge=1, description="Raw sessions returned by version analytics")

    # Token generation
    ACCESS_TOKEN_BYTES: int = Field(default=24, ge=16, description="Entropy bytes for view/edit tokens")
    VERSION_SLUG_BYTES: int = Field(default=9, ge=6, description="Entropy bytes for version slugs")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Heroku-style URLs use 'postgres' but SQLAlchemy needs 'postgresql'."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+psycopg2://", 1)
        return v

    @field_validator("FRONTEND_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# Global settings instance
settings = Settings()
