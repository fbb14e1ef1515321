"""Network module for the Ignite client."""

from .connection import Connection
from .sequencer import RequestSequencer

__all__ = ["Connection", "RequestSequencer"]
