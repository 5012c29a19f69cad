"""Configuration management for xls2txt.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XLS2TXT_ prefix, or via a .env file in the working directory.

Environment Variables:
    XLS2TXT_LOG_LEVEL: Logging level for stderr diagnostics (default: WARNING)
    XLS2TXT_DEBUG: Show tracebacks for aborted conversions (default: false)
    XLS2TXT_DEFAULT_SHEET: Sheet selector used when --sheet is omitted (default: 1)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Converter settings loaded from environment variables.

    Example .env file:
        XLS2TXT_LOG_LEVEL=DEBUG
        XLS2TXT_DEFAULT_SHEET=Summary
    """

    model_config = SettingsConfigDict(
        env_prefix="XLS2TXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Conversion Settings
    # =========================================================================

    default_sheet: str = "1"
    """Sheet name or 1-based index converted when no sheet is requested."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "WARNING"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with tracebacks for aborted conversions."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("default_sheet")
    @classmethod
    def validate_default_sheet(cls, v: str) -> str:
        """Validate the default sheet selector is non-empty."""
        if not v:
            raise ValueError("default_sheet must be a non-empty string")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary for diagnostics."""
        return {
            "default_sheet": self.default_sheet,
            "log_level": self.log_level,
            "debug": self.debug,
        }


settings = Settings()
