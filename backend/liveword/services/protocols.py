"""
Protocol definitions for the provider adapters and the session seams.

This module defines interfaces (Python Protocols) that allow:
- Swapping implementations (e.g., GCP -> another provider)
- Testing without real API credentials
- Clear contracts between components

Usage:
    from liveword.services.protocols import TranslationProtocol

    def relay(translator: TranslationProtocol, text: str):
        return translator.translate_text(text, target_language_code="es")
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Protocol


@dataclass(frozen=True)
class TranscriptEvent:
    """One recognition result as emitted by the STT provider."""
    transcript: str
    is_final: bool
    language_code: str


class SpeechToTextProtocol(Protocol):
    """
    Interface for streaming speech-to-text services.

    Implementations are blocking and are driven from a worker thread.
    """

    def streaming_recognize(
        self, audio_chunks: Iterable[bytes], language_code: str
    ) -> Iterator[TranscriptEvent]:
        """
        Open a streaming recognition call over audio_chunks.

        Returns:
            Iterator of TranscriptEvent in provider order. Raises the
            provider's error when the call fails or hits its duration limit.
        """
        ...


class TranslationProtocol(Protocol):
    """Interface for text translation services."""

    def translate_text(
        self,
        text: str,
        *,
        target_language_code: str,
        source_language_code: Optional[str] = None,
    ) -> str:
        """Translate text; returns "" when the provider has no result."""
        ...

    def translate_raw(self, text: str, target_language_code: str) -> Dict[str, Any]:
        """Translate and return the provider response untouched."""
        ...


class TextToSpeechProtocol(Protocol):
    """Interface for text-to-speech services."""

    def synthesize(
        self,
        text: str,
        *,
        language_code: str,
        voice_name: Optional[str] = None,
    ) -> bytes:
        """Synthesize speech from text; returns encoded audio (MP3)."""
        ...


class TranscriptStreamProtocol(Protocol):
    """
    A live STT stream owned by exactly one session.

    Bound to the language it was opened with; must be ended explicitly.
    """

    language_code: str

    async def start(self) -> None:
        ...

    def write(self, chunk: bytes) -> bool:
        ...

    async def end(self) -> None:
        ...


class StreamListener(Protocol):
    """Callbacks a stream delivers to its owning session, in provider order."""

    async def on_stream_ready(self, stream: TranscriptStreamProtocol) -> None:
        ...

    async def on_transcript(self, stream: TranscriptStreamProtocol, event: TranscriptEvent) -> None:
        ...

    async def on_stream_error(self, stream: TranscriptStreamProtocol, error: BaseException) -> None:
        ...
