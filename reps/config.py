"""
Configuration settings for reps.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with ``REPS_`` (e.g. ``REPS_API_URL``).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import DEFAULT_STATUSES, StatusWorkflow


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Local Store
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".reps",
        description="Directory holding data.json and preferences.json",
    )

    # ========================================
    # Remote API
    # ========================================
    api_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the reps web API",
    )
    api_key: str | None = Field(
        default=None,
        description="Bearer token for the web API; unset means local mode",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single API request",
    )

    # ========================================
    # Workflow / Review
    # ========================================
    statuses: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STATUSES),
        description="Board columns in order",
    )
    terminal_status: str = Field(
        default="done",
        description="Status that marks a task completed when moved onto the board",
    )
    review_limit: int | None = Field(
        default=None,
        ge=1,
        description="Cap on the number of tasks in one review session",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="loguru level for CLI output",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def data_file(self) -> Path:
        return self.data_dir / "data.json"

    @property
    def prefs_file(self) -> Path:
        return self.data_dir / "preferences.json"

    def is_api_mode(self) -> bool:
        """Check if the remote API is configured."""
        return bool(self.api_key)

    def get_workflow(self) -> StatusWorkflow:
        """Board workflow built from the configured statuses."""
        terminal = self.terminal_status if self.terminal_status in self.statuses else None
        return StatusWorkflow.from_names(self.statuses, terminal=terminal)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
