import asyncio
import json
import logging
import uuid
from typing import Callable, Dict, Optional, Tuple, TYPE_CHECKING

from fastapi import WebSocketDisconnect
from pydantic import ValidationError

from liveword.config.settings import settings
from liveword.schemas.websocket_events import (
    SetLanguageEvent,
    SetTranslationEvent,
    StartTranscriptionEvent,
    StopEvent,
    control_event_adapter,
    error_message,
    ready_message,
    transcript_message,
    translation_message,
)
from liveword.services.connection.models import ClientConnection
from liveword.services.metrics import transcripts_forwarded
from liveword.services.protocols import StreamListener, TranscriptEvent, TranscriptStreamProtocol
from liveword.services.session.registry import BroadcastRegistry

if TYPE_CHECKING:
    from liveword.services.translation.broadcaster import TranslationBroadcaster

logger = logging.getLogger(__name__)

StreamFactory = Callable[[str, StreamListener], TranscriptStreamProtocol]


def forced_finalization_delay(delays: Dict[str, float], language_code: str) -> Optional[float]:
    """Look up the forced-finalization delay for a language (exact code, then primary subtag)."""
    if not delays:
        return None
    if language_code in delays:
        return delays[language_code]
    return delays.get(language_code.split("-")[0])


class TranscriptionSession:
    """
    Owns one client connection for its whole lifetime.
    Handles:
    - Routing inbound frames (control messages vs. audio)
    - The STT stream lifecycle (lazy open, language switch, teardown)
    - Forwarding transcripts in provider order, suppressing duplicates
    - Handing final transcripts to the translation fan-out
    - Cleanup on stop or disconnect
    """

    def __init__(
        self,
        connection: ClientConnection,
        registry: BroadcastRegistry,
        broadcaster: "TranslationBroadcaster",
        stream_factory: StreamFactory,
        session_id: Optional[str] = None,
        language: Optional[str] = None,
        finalization_delays: Optional[Dict[str, float]] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.connection = connection
        self.language = language or settings.DEFAULT_TRANSCRIPTION_LANGUAGE
        self.target_language: Optional[str] = None
        self.synthesis_enabled = True
        self.stream: Optional[TranscriptStreamProtocol] = None
        self.last_transcript: Optional[Tuple[str, bool]] = None
        self.is_closed = False

        self._registry = registry
        self._broadcaster = broadcaster
        self._stream_factory = stream_factory
        self._finalization_delays = (
            finalization_delays if finalization_delays is not None
            else settings.FORCED_FINALIZATION_DELAYS
        )
        self._finalize_task: Optional[asyncio.Task] = None
        # Serializes stream open / end / switch
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"<TranscriptionSession {self.session_id} {self.language}>"

    # === Message loop ===

    async def run(self):
        """Receive frames until the client leaves or asks to stop, then clean up."""
        websocket = self.connection.websocket
        try:
            while not self.is_closed:
                message = await websocket.receive()

                if message["type"] == "websocket.disconnect":
                    logger.info(f"[Session {self.session_id}] Client disconnected")
                    break

                await self.handle_message(message)

        except WebSocketDisconnect:
            logger.info(f"[Session {self.session_id}] Client disconnected")

        except Exception as e:
            logger.error(f"[Session {self.session_id}] Error during message loop: {e}")

        finally:
            await self.close(reason="disconnect")

    async def handle_message(self, message: dict):
        """Dispatch one ASGI websocket.receive message."""
        if message.get("bytes") is not None:
            await self.handle_bytes(message["bytes"])
        elif message.get("text") is not None:
            await self.handle_text(message["text"])
        else:
            logger.warning(f"[Session {self.session_id}] Unexpected message structure")

    async def handle_text(self, text: str):
        """Text frames carry JSON control messages; anything unparsable is dropped."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"[Session {self.session_id}] Invalid JSON received, dropping frame")
            return

        await self._handle_control(data)

    async def handle_bytes(self, payload: bytes):
        """Binary frames are audio unless they are a JSON control object."""
        if not payload:
            return

        if payload[:1] == b"{":
            try:
                data = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError):
                data = None
            if isinstance(data, dict):
                await self._handle_control(data)
                return

        await self.handle_audio(payload)

    async def _handle_control(self, data):
        if not isinstance(data, dict):
            logger.warning(f"[Session {self.session_id}] Control message is not an object, dropping")
            return

        try:
            event = control_event_adapter.validate_python(data)
        except ValidationError:
            logger.warning(f"[Session {self.session_id}] Unknown message type: {data.get('type')!r}")
            return

        if isinstance(event, SetLanguageEvent):
            await self.set_language(event.language or settings.DEFAULT_TRANSCRIPTION_LANGUAGE)

        elif isinstance(event, SetTranslationEvent):
            self.set_translation(event.target_language, synthesize=event.synthesize)

        elif isinstance(event, StartTranscriptionEvent):
            await self.start_transcription()

        elif isinstance(event, StopEvent):
            logger.info(f"[Session {self.session_id}] Client requested {event.type}")
            await self.close(reason=event.type)

    # === Control operations ===

    async def set_language(self, language: str):
        """
        Change the transcription language. A live stream is ended and a new
        one opened, so no later audio reaches a stream of the old language.
        """
        async with self._lock:
            self.language = language
            logger.info(f"[Session {self.session_id}] ✅ Transcription language set to: {language}")

            if self.stream is None or self.stream.language_code == language:
                return

            await self._end_stream()
            await self._open_stream()

    def set_translation(self, target_language: Optional[str], synthesize: bool = True):
        """Set the translation target and (re)register for the broadcast."""
        self.target_language = target_language or settings.DEFAULT_TRANSLATION_LANGUAGE
        self.synthesis_enabled = synthesize
        self._registry.upsert(self, self.target_language)
        logger.info(
            f"[Session {self.session_id}] ✅ Translation target set to: {self.target_language} "
            f"(speech: {'on' if synthesize else 'off'})"
        )

    async def start_transcription(self):
        """Open the stream now instead of on the first audio frame."""
        async with self._lock:
            if self.stream is None and not self.is_closed:
                await self._open_stream()

    async def handle_audio(self, chunk: bytes):
        """Write audio to the current stream, opening one if idle."""
        if self.is_closed:
            return

        async with self._lock:
            if self.stream is None:
                await self._open_stream()

            if not self.stream.write(chunk):
                # Stream died between frames; its error is still on the way
                await self._end_stream()
                await self._open_stream()
                self.stream.write(chunk)

    async def close(self, reason: str = "disconnect"):
        """
        Single termination path for stop, stopSession and disconnect:
        end the stream, leave the broadcast, close the socket. Idempotent.
        """
        if self.is_closed:
            return
        self.is_closed = True
        logger.info(f"[Session {self.session_id}] 🛑 Closing ({reason})")

        async with self._lock:
            await self._end_stream()
        self._registry.remove(self)
        await self.connection.close()

    # === Stream lifecycle ===

    async def _open_stream(self):
        stream = self._stream_factory(self.language, self)
        self.stream = stream
        await stream.start()

    async def _end_stream(self):
        stream, self.stream = self.stream, None
        self._cancel_finalizer()
        if stream is not None:
            await stream.end()

    # === Stream callbacks ===

    async def on_stream_ready(self, stream: TranscriptStreamProtocol):
        if stream is not self.stream or self.is_closed:
            return
        await self.connection.send_json(ready_message(stream.language_code))

    async def on_transcript(self, stream: TranscriptStreamProtocol, event: TranscriptEvent):
        if stream is not self.stream or self.is_closed:
            return
        await self._emit_transcript(event.transcript, event.is_final)

    async def on_stream_error(self, stream: TranscriptStreamProtocol, error: BaseException):
        """The stream already ended itself; drop it and tell the client once."""
        if stream is self.stream:
            self.stream = None
            self._cancel_finalizer()
        if self.is_closed:
            return
        logger.error(f"[Session {self.session_id}] STT stream error: {error}")
        await self.connection.send_json(error_message(str(error) or type(error).__name__))

    # === Transcript delivery ===

    async def _emit_transcript(self, text: str, is_final: bool, forced: bool = False):
        if not text or not text.strip():
            return

        key = (text, is_final)
        if key == self.last_transcript:
            logger.debug(f"[Session {self.session_id}] Duplicate transcript suppressed")
            return
        self.last_transcript = key
        self._cancel_finalizer()

        await self.connection.send_json(transcript_message(text, is_final))
        transcripts_forwarded.labels(
            finality="forced" if forced else ("final" if is_final else "interim")
        ).inc()

        if is_final:
            logger.info(f"[Session {self.session_id}] 🔊 Transcribed: {text}")
            self._broadcaster.broadcast(text, origin=self.session_id)
        else:
            self._arm_finalizer(text)

    def _arm_finalizer(self, text: str):
        delay = forced_finalization_delay(self._finalization_delays, self.language)
        if delay is None:
            return
        self._finalize_task = asyncio.create_task(self._finalize_after(delay, self.stream, text))

    async def _finalize_after(self, delay: float, stream: Optional[TranscriptStreamProtocol], text: str):
        await asyncio.sleep(delay)
        self._finalize_task = None
        if stream is not self.stream or self.is_closed:
            return
        logger.info(f"[Session {self.session_id}] ⏱️ No final after {delay}s, finalizing interim")
        await self._emit_transcript(text, True, forced=True)

    def _cancel_finalizer(self):
        task, self._finalize_task = self._finalize_task, None
        if task is not None and not task.done():
            task.cancel()

    # === Fan-out delivery (called by the broadcaster) ===

    async def deliver_translation(self, translation: str) -> bool:
        if self.is_closed:
            return False
        return await self.connection.send_json(translation_message(translation))

    async def deliver_audio(self, audio: bytes) -> bool:
        if self.is_closed:
            return False
        return await self.connection.send_bytes(audio)
