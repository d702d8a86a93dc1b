"""Runtime configuration for the Sigma coin layer."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Mint transaction version that introduced Sigma coins
DEFAULT_COIN_VERSION = 30

# Label hashed to derive the second commitment generator
DEFAULT_H0_LABEL = "sigmacoin/h0"


class SigmaSettings(BaseSettings):
    """
    Settings read from the environment (prefix ``SIGMA_``) or a ``.env`` file.

    Example:
        SIGMA_COIN_VERSION=30
        SIGMA_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SIGMA_",
        env_file=".env",
        extra="ignore",
    )

    coin_version: int = Field(default=DEFAULT_COIN_VERSION, ge=0)
    log_level: str = Field(default="WARNING")
    h0_label: str = Field(default=DEFAULT_H0_LABEL, min_length=1)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> SigmaSettings:
    """Get the process-wide settings instance."""
    return SigmaSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Apply a log level to the ``sigmacoin`` logger.

    Args:
        level: Level name; defaults to the configured ``log_level``

    Returns:
        logging.Logger: The package logger
    """
    logger = logging.getLogger("sigmacoin")
    logger.setLevel((level or get_settings().log_level).upper())
    return logger
