"""
Streaming STT module.

Provides SpeechStream (one provider session per language) and the factory
sessions use to open streams.
"""
from liveword.services.protocols import SpeechToTextProtocol, StreamListener
from liveword.services.stt.stream import SpeechStream, StreamState


class SpeechStreamFactory:
    """Opens SpeechStreams against a shared speech service."""

    def __init__(self, speech_service: SpeechToTextProtocol):
        self.speech_service = speech_service

    def __call__(self, language_code: str, listener: StreamListener) -> SpeechStream:
        return SpeechStream(self.speech_service, language_code, listener)


__all__ = ["SpeechStream", "SpeechStreamFactory", "StreamState"]
