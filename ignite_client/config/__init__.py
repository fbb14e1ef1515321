"""Configuration module for the Ignite client."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
