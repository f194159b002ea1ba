"""
WebSocket Event Schemas

Pydantic models for type-safe WebSocket event handling.
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# =============================================================================
# Inbound control messages
# =============================================================================

class WebSocketEventBase(BaseModel):
    """Base model for all control messages."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str


class SetLanguageEvent(WebSocketEventBase):
    """Switch the transcription language."""
    type: Literal["setLanguage"] = "setLanguage"
    language: Optional[str] = None


class SetTranslationEvent(WebSocketEventBase):
    """Subscribe to (or change) the translation broadcast."""
    type: Literal["setTranslation"] = "setTranslation"
    target_language: Optional[str] = Field(None, alias="targetLanguage")
    synthesize: bool = True


class StartTranscriptionEvent(WebSocketEventBase):
    """Open the STT stream without waiting for audio."""
    type: Literal["start_transcription"] = "start_transcription"


class StopEvent(WebSocketEventBase):
    """End the session. 'stopSession' is accepted as an alias."""
    type: Literal["stop", "stopSession"] = "stop"


ControlEvent = Annotated[
    Union[SetLanguageEvent, SetTranslationEvent, StartTranscriptionEvent, StopEvent],
    Field(discriminator="type"),
]

control_event_adapter: TypeAdapter[ControlEvent] = TypeAdapter(ControlEvent)


# =============================================================================
# Outbound messages
# =============================================================================

def transcript_message(transcript: str, is_final: bool) -> dict:
    return {"transcript": transcript, "is_final": is_final}


def translation_message(translation: str) -> dict:
    return {"type": "translation", "translation": translation}


def ready_message(language: str) -> dict:
    return {"type": "stt_ready", "language": language}


def error_message(error: str) -> dict:
    return {"error": error}
