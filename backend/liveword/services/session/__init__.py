"""
Session management module.

Provides the TranscriptionSession state machine and the process-wide
Broadcast Registry.
"""
from .registry import BroadcastRegistry, broadcast_registry
from .session import TranscriptionSession

__all__ = ["BroadcastRegistry", "TranscriptionSession", "broadcast_registry"]
