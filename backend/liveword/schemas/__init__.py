"""
Schemas Package

Pydantic models for API and WebSocket events.
"""

from liveword.schemas.translate import TranslateRequest
from liveword.schemas.websocket_events import (
    WebSocketEventBase,
    SetLanguageEvent,
    SetTranslationEvent,
    StartTranscriptionEvent,
    StopEvent,
    ControlEvent,
    control_event_adapter,
)

__all__ = [
    "TranslateRequest",
    "WebSocketEventBase",
    "SetLanguageEvent",
    "SetTranslationEvent",
    "StartTranscriptionEvent",
    "StopEvent",
    "ControlEvent",
    "control_event_adapter",
]
