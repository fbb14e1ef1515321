"""Cache module for the Ignite client."""

from .cache import IgniteCache

__all__ = ["IgniteCache"]
