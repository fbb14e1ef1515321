"""
Ignite Client Configuration Settings

This module contains the configuration defaults for the Ignite client.
Values read from the environment are resolved once, at import time.
Arguments passed to IgniteClient always take precedence.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("IGNITE_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("IGNITE_PORT", "10800"))
    TIMEOUT: float = float(os.environ.get("IGNITE_TIMEOUT", "10"))  # 0 disables

    # Handshake settings
    USERNAME: str = os.environ.get("IGNITE_USERNAME", "")
    PASSWORD: str = os.environ.get("IGNITE_PASSWORD", "")
    PROTOCOL_MAJOR: int = 1
    PROTOCOL_MINOR: int = 1
    PROTOCOL_PATCH: int = 0

    # Request id settings
    REQUEST_ID_QUEUE_SIZE: int = 10
    SEQUENCER_POLL_INTERVAL: float = 0.05  # Seconds between stop checks

    # Socket settings
    READ_BUFFER_SIZE: int = 4096

    # Logging settings
    DEBUG: bool = os.environ.get("IGNITE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("IGNITE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
