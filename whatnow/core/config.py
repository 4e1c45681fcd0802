"""Configuration management for whatnow."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # PocketBase Configuration
    pocketbase_url: str = Field(default="http://127.0.0.1:8090", description="PocketBase server URL")
    pocketbase_admin_email: str | None = Field(
        default=None, description="PocketBase admin email used for server-side record access"
    )
    pocketbase_admin_password: str | None = Field(
        default=None, description="PocketBase admin password used for server-side record access"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Redis Configuration (optional)
    redis_url: str | None = Field(default=None, description="Redis connection URL (e.g., redis://localhost:6379)")

    # History and suggestions
    completed_tasks_default_limit: int = Field(
        default=50, description="Default number of completion records returned by the history endpoint"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Task attributes
    TIME_OPTIONS: tuple[int, ...] = (5, 15, 30, 60)
    DEFAULT_IMPORT_TIME: int = 15
    TASK_TYPES: tuple[str, ...] = ("Chores", "Work", "Health", "Admin", "Errand", "Self-care", "Creative", "Social")
    DEFAULT_TASK_TYPE: str = "Chores"

    # Groups
    INVITE_CODE_LENGTH: int = 6
    INVITE_CODE_MIN_LENGTH: int = 4
    MAX_GROUP_NAME_LENGTH: int = 50

    # Cache TTLs
    CACHE_TTL_LEADERBOARD_SECONDS: int = 60  # 1 minute for leaderboard cache

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100  # Default pagination limit for list queries
    FULL_LIST_BATCH_SIZE: int = 200  # Page size when reading every row for an owner

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10  # Maximum connections in Redis connection pool
    REDIS_INVALIDATION_QUEUE_MAXLEN: int = 1000  # Max items in Redis invalidation queue


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
