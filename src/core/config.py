"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Warden Auth API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/warden",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # Keys
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret used to sign issued keys",
    )
    jwt_algorithm: str = Field(default="HS256")
    login_key_duration_minutes: int = Field(default=600)
    recovery_key_duration_minutes: int = Field(default=5)

    # Invites
    invite_duration_days: int = Field(
        default=7,
        description="Validity window of org and platform invites",
    )

    # Users service
    users_service_url: str = Field(
        default="http://localhost:8180",
        description="Base URL of the users service used to resolve emails and IDs",
    )
    users_service_timeout: float = Field(default=10.0)

    # Events
    org_events_stream: str = Field(
        default="warden.auth",
        description="Stream that org create and remove events are published to",
    )

    # Logging
    log_level: str = Field(default="info")
    log_format: str = Field(
        default="",
        description="'json' or 'console'. Empty picks json in production.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers usually supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_log_format(self) -> str:
        """Resolve the log renderer, defaulting to JSON in production."""
        if self.log_format:
            return self.log_format
        return "json" if self.is_production else "console"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
