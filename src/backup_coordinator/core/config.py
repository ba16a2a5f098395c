"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database Configuration
    # postgresql+psycopg://... in production, sqlite+aiosqlite://... for local runs
    database_url: str = Field(
        default="sqlite+aiosqlite:///./backup_coordinator.db", alias="DATABASE_URL"
    )
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Coordinator policy
    # Owner identity gates admin operations; fixed for the lifetime of a deployment
    owner_identity: str = Field(default="", alias="OWNER_IDENTITY")
    default_min_backup_replicas: int = Field(default=3, ge=0, alias="DEFAULT_MIN_BACKUP_REPLICAS")
    # Node used for restores without a preferred node; empty means the owner
    restore_fallback_node: str = Field(default="", alias="RESTORE_FALLBACK_NODE")
    # Starting height for the in-process block counter
    block_counter_start: int = Field(default=0, ge=0, alias="BLOCK_COUNTER_START")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def restore_fallback_identity(self) -> str:
        """Identity selected for restores when the requester names no node."""
        return self.restore_fallback_node or self.owner_identity

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration on startup.

        Fails fast when the owner identity is missing, since admin operations
        would otherwise be unreachable. Skipped in test environments.
        """
        if self.app_env in ("test", "testing"):
            return self

        if not self.owner_identity:
            raise ValueError(
                "CRITICAL: Missing required environment variable:\n\n"
                "  - OWNER_IDENTITY: identity allowed to change coordinator policy\n\n"
                "The application cannot start without it."
            )

        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.app_env == "production":
        # JSON output for production (log aggregation)
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
