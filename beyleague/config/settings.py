import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from beyleague.models.enums import WinnerSide


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Supabase Configuration
    supabase_url: Optional[str] = Field(
        None, description="URL for the Supabase project."
    )
    supabase_key: Optional[str] = Field(
        None, description="Anon key for the Supabase project."
    )
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key for Supabase (use with caution!)."
    )
    store_timeout_seconds: float = Field(
        15.0,
        gt=0,
        description="Upper bound for a single store call before it is treated as failed.",
    )

    # Import Settings
    batch_csv_source: str = Field(
        "batch-import.csv",
        description="Path or http(s) URL of the batch match CSV.",
    )
    summary_detail_limit: int = Field(
        10,
        ge=0,
        description="How many warnings/errors the import summary lists before truncating.",
    )
    unresolved_winner_side: WinnerSide = Field(
        WinnerSide.A,
        description="Side credited with the win when the winner cell matches neither player.",
    )
    default_location: Optional[str] = Field(
        None, description="Location recorded on imported and logged matches."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
