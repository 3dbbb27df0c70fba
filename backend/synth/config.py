"""
Synth Backend: Application Configuration
=========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory, the lifespan and the services.
When:  Loaded once at module import time; validated before the app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Three days, the delay between publishing a snippet and it becoming downloadable
DEFAULT_DOWNLOADABLE_DELAY = 3 * 24 * 60 * 60


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development. Attributes are
    grouped by concern.
    """

    # ── Store ─────────────────────────────────────────────────────────────
    # What: Populate a fresh store with the demo marketplace on startup
    # Ignored when a snapshot was loaded
    seed_demo_data: bool = Field(default=True)

    # What: Optional JSON file the store is saved to on shutdown and after sweeps
    # Empty string disables snapshots (state is lost on restart)
    snapshot_path: str = Field(default="")

    # ── Scheduled Tasks ───────────────────────────────────────────────────
    # What: Seconds between publishing a snippet and it becoming downloadable
    downloadable_delay_seconds: int = Field(default=DEFAULT_DOWNLOADABLE_DELAY, ge=0)

    # What: How often the background sweep looks for due tasks
    sweep_interval_seconds: int = Field(default=60, ge=1, le=3600)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs (split by cors_origins_list)
    cors_origins: str = Field(default="http://localhost:5173")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # SNAPSHOT_PATH and snapshot_path both work
    }

    @property
    def snapshots_enabled(self) -> bool:
        return bool(self.snapshot_path.strip())


# Singleton instance, imported throughout the application
settings = Settings()
