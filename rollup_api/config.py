"""
Configuration for the Rollup Transaction API.

Settings are read from environment variables once at start-up.
"""

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API process."""
    database_url: str = "sqlite:///./rollup.db"
    log_level: str = "INFO"
    api_title: str = "Rollup Transaction API"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from environment variables.

        Returns:
            Settings: Configured settings instance

        Raises:
            ValueError: If LOG_LEVEL is not a known logging level
        """
        log_level = os.environ.get("LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(
                f"LOG_LEVEL must be a standard logging level, got {log_level!r}"
            )

        return cls(
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            log_level=log_level,
            api_title=os.environ.get("API_TITLE", cls.api_title),
        )


settings = Settings.from_env()
