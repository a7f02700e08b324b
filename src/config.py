"""
Configuration management for the Pet Daycare Booking service.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

from functools import lru_cache
from typing import Literal, Optional

from dateutil import tz
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./daycare_booking.db",
        description="Database connection URL"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Business rules
    business_timezone: str = Field(
        default="Europe/London",
        description="Timezone availability rules are written in (IANA name, e.g., Europe/London)"
    )
    slot_duration_minutes: Optional[int] = Field(
        default=None,
        ge=5,
        description="Length of listed slots; unset lists one slot per rule window"
    )
    max_slot_range_days: int = Field(
        default=62,
        ge=1,
        description="Longest date range accepted by the slot listing endpoint"
    )
    privileged_roles: list[str] = Field(
        default=["admin", "staff"],
        description="Roles allowed to see today's and past slots"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    def is_privileged(self, role: Optional[str]) -> bool:
        """Check whether a caller role gets operational (past/today) slot visibility."""
        return bool(role) and role.lower() in {r.lower() for r in self.privileged_roles}

    def validate_timezone(self) -> None:
        """
        Validate the business timezone name.

        Raises:
            ValueError: If the timezone is not a known IANA name
        """
        if tz.gettz(self.business_timezone) is None:
            raise ValueError(
                f"BUSINESS_TIMEZONE '{self.business_timezone}' is not a known timezone."
            )

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        # Row locks on the staff table only serialize bookings on PostgreSQL
        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        try:
            self.validate_timezone()
        except ValueError as e:
            errors.append(str(e))

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.business_timezone)
    """
    return Settings()
