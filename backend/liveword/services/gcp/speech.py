"""
GCP Speech Service

Handles Google Cloud Speech-to-Text streaming recognition.
"""

import logging
from typing import Iterable, Iterator, List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import speech

from liveword.config.constants import AUDIO_SAMPLE_RATE
from liveword.config.settings import settings
from liveword.services.gcp.credentials import ensure_credentials
from liveword.services.protocols import TranscriptEvent

logger = logging.getLogger(__name__)


def is_stream_limit_error(error: BaseException) -> bool:
    """
    True when the provider closed the stream because it hit its duration
    (or idle) limit. Google reports both as OUT_OF_RANGE (gRPC code 11);
    the stream has to be reopened rather than treated as a failure.
    """
    return isinstance(error, gcp_exceptions.OutOfRange)


class GCPSpeechService:
    """Handles Speech-to-Text operations."""

    def __init__(
        self,
        phrases: Optional[List[str]] = None,
        model: Optional[str] = None,
    ):
        ensure_credentials()
        self._client = speech.SpeechClient()
        self.phrases = list(phrases if phrases is not None else settings.SPEECH_CONTEXT_PHRASES)
        self.model = model if model is not None else settings.SPEECH_MODEL

    def build_streaming_config(self, language_code: str) -> speech.StreamingRecognitionConfig:
        """Build the recognition config bundle for a language."""
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.WEBM_OPUS,
            sample_rate_hertz=AUDIO_SAMPLE_RATE,
            language_code=language_code,
            enable_automatic_punctuation=True,
        )
        if self.phrases:
            config.speech_contexts = [speech.SpeechContext(phrases=self.phrases)]
        if self.model:
            config.model = self.model

        return speech.StreamingRecognitionConfig(
            config=config,
            interim_results=True,
        )

    def streaming_recognize(
        self,
        audio_chunks: Iterable[bytes],
        language_code: str,
    ) -> Iterator[TranscriptEvent]:
        """
        Transcribe an audio stream using the Streaming API.

        The provider call is opened before this returns; iterate the result
        from a worker thread (blocking). Provider GoogleAPICallError
        subclasses propagate unchanged so the caller can tell a duration
        limit (see is_stream_limit_error) from a fatal error.

        Args:
            audio_chunks: Iterator that yields encoded audio chunks.
            language_code: Language code for recognition.

        Returns:
            Iterator of TranscriptEvent, one per interim or final result.
        """
        streaming_config = self.build_streaming_config(language_code)
        logger.debug(f"Opening streaming recognize (lang: {language_code}, model: {self.model or 'default'})")

        def request_generator():
            for chunk in audio_chunks:
                yield speech.StreamingRecognizeRequest(audio_content=chunk)

        responses = self._client.streaming_recognize(
            config=streaming_config,
            requests=request_generator(),
        )
        return self._iter_events(responses, language_code)

    def _iter_events(self, responses, language_code: str) -> Iterator[TranscriptEvent]:
        for response in responses:
            if not response.results:
                continue

            result = response.results[0]
            if not result.alternatives:
                continue

            yield TranscriptEvent(
                transcript=result.alternatives[0].transcript,
                is_final=result.is_final,
                language_code=language_code,
            )
