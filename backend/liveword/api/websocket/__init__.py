"""
WebSocket API module.

Provides the WebSocket router for live transcription.
"""
from .router import router

__all__ = ["router"]
