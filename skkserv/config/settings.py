"""
SKK Server Configuration Settings

This module contains all configuration constants for the SKK server.
Values can be overridden through environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("SKKSERV_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("SKKSERV_PORT", "1178"))

    # Cache settings
    CACHE_PATH: str = os.environ.get(
        "SKKSERV_CACHE_PATH",
        os.path.join(os.path.expanduser("~"), ".skkserv", "cache.tsv"),
    )
    CACHE_TTL: int = int(os.environ.get("SKKSERV_CACHE_TTL", "86400"))

    # Connection settings
    READ_BUFFER_SIZE: int = 512
    READ_TIMEOUT: float = float(os.environ.get("SKKSERV_READ_TIMEOUT", "5"))
    WIRE_ENCODING: str = "euc_jp"

    # Remote transliteration settings
    TRANSLITERATE_URL: str = os.environ.get(
        "SKKSERV_TRANSLITERATE_URL", "http://www.google.com/transliterate"
    )
    LOOKUP_TIMEOUT: float = float(os.environ.get("SKKSERV_LOOKUP_TIMEOUT", "10"))

    # Identification
    SERVER_NAME: str = "skkserv"

    # Logging settings
    DEBUG: bool = os.environ.get("SKKSERV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("SKKSERV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
