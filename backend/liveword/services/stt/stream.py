"""
Speech Stream - one live STT session bound to one language.

Bridges the blocking Google streaming API, driven from a worker thread,
and the event loop:

    write() -> audio queue -> worker thread -> provider
    provider results -> call_soon_threadsafe -> dispatch task -> listener

State machine:
    IDLE -> STARTING -> ACTIVE -> ENDING -> IDLE

A duration-limit error from the provider reopens the call in the same
language (ACTIVE -> STARTING -> ACTIVE) without telling the listener;
queued audio survives the restart. Any other provider error ends the
stream and is reported once through on_stream_error.
"""

import asyncio
import itertools
import logging
import queue
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterator, Optional

from liveword.config.constants import STT_QUEUE_POLL_INTERVAL_SEC, STT_STREAM_END_TIMEOUT_SEC
from liveword.services.gcp.speech import is_stream_limit_error
from liveword.services.metrics import active_streams_gauge, stream_errors, stream_restarts
from liveword.services.protocols import SpeechToTextProtocol, StreamListener

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ENDING = "ending"


class _Signal(Enum):
    READY = "ready"
    RESTART = "restart"


@dataclass
class _Failure:
    error: BaseException


class SpeechStream:
    """
    Owns one provider streaming session for one language.

    The owning session is the only writer. end() is idempotent and must be
    called before the stream is dropped; results arriving after end() are
    discarded.
    """

    _ids = itertools.count(1)

    def __init__(
        self,
        speech_service: SpeechToTextProtocol,
        language_code: str,
        listener: StreamListener,
    ):
        self.stream_id = next(SpeechStream._ids)
        self.language_code = language_code
        self.state = StreamState.IDLE
        self.restarts = 0

        self._speech = speech_service
        self._listener = listener
        self._audio: queue.Queue = queue.Queue()
        self._carry: Deque[bytes] = deque()
        self._carry_lock = threading.Lock()
        self._generation = 0
        self._closed = threading.Event()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: Optional[asyncio.Queue] = None
        self._thread: Optional[threading.Thread] = None
        self._worker_done: Optional[asyncio.Future] = None
        self._dispatcher: Optional[asyncio.Task] = None
        self._started = False
        self._counted = False
        self._ready_announced = False

    def __repr__(self) -> str:
        return f"<SpeechStream #{self.stream_id} {self.language_code} {self.state.value}>"

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    # === Lifecycle ===

    async def start(self):
        """Open the provider call. No-op if already started or ended."""
        if self._started or self.is_closed:
            return

        self._started = True
        self.state = StreamState.STARTING
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()

        active_streams_gauge.inc()
        self._counted = True

        self._dispatcher = asyncio.create_task(self._dispatch())
        # Dedicated thread: the worker blocks for the whole life of the stream
        self._worker_done = self._loop.create_future()
        self._thread = threading.Thread(target=self._run, name=f"stt-{self.stream_id}", daemon=True)
        self._thread.start()
        logger.info(f"[STT {self.stream_id}] 🎙️ Starting stream (lang: {self.language_code})")

    def write(self, chunk: bytes) -> bool:
        """Queue an audio chunk. Returns False once the stream has ended."""
        if self.is_closed:
            return False
        self._audio.put_nowait(chunk)
        return True

    async def end(self):
        """End the stream. Safe to call repeatedly or before start()."""
        if self.is_closed:
            return

        self._close()
        self.state = StreamState.ENDING

        dispatcher = self._dispatcher
        if dispatcher and not dispatcher.done() and dispatcher is not asyncio.current_task():
            dispatcher.cancel()
            try:
                await dispatcher
            except asyncio.CancelledError:
                pass

        if self._worker_done is not None:
            try:
                await asyncio.wait_for(asyncio.shield(self._worker_done), timeout=STT_STREAM_END_TIMEOUT_SEC)
            except asyncio.TimeoutError:
                logger.warning(f"[STT {self.stream_id}] Provider worker still draining after end")

        self._finish()
        logger.info(f"[STT {self.stream_id}] 🛑 Stream ended (restarts: {self.restarts})")

    def _close(self):
        self._closed.set()
        # Wake a worker blocked on the queue
        self._audio.put(None)

    def _finish(self):
        self.state = StreamState.IDLE
        if self._counted:
            self._counted = False
            active_streams_gauge.dec()

    # === Event loop side ===

    async def _dispatch(self):
        """Deliver provider events to the listener one at a time, in order."""
        while True:
            item = await self._events.get()

            if item is _Signal.READY:
                self.state = StreamState.ACTIVE
                if not self._ready_announced:
                    self._ready_announced = True
                    await self._notify(self._listener.on_stream_ready(self))

            elif item is _Signal.RESTART:
                self.restarts += 1
                self.state = StreamState.STARTING
                stream_restarts.inc()

            elif isinstance(item, _Failure):
                self._close()
                self.state = StreamState.ENDING
                stream_errors.inc()
                logger.error(f"[STT {self.stream_id}] ❌ Stream failed: {item.error}")
                self._finish()
                await self._notify(self._listener.on_stream_error(self, item.error))
                return

            else:
                await self._notify(self._listener.on_transcript(self, item))

    async def _notify(self, callback):
        try:
            await callback
        except Exception:
            logger.exception(f"[STT {self.stream_id}] Listener callback failed")

    def _post(self, item):
        """Hand an item from the worker thread to the dispatch task."""
        try:
            self._loop.call_soon_threadsafe(self._events.put_nowait, item)
        except RuntimeError:
            logger.debug(f"[STT {self.stream_id}] Event loop closed, dropping {item!r}")

    # === Worker thread side ===

    def _run(self):
        try:
            self._recognize()
        finally:
            try:
                self._loop.call_soon_threadsafe(self._mark_worker_done)
            except RuntimeError:
                pass

    def _mark_worker_done(self):
        if not self._worker_done.done():
            self._worker_done.set_result(None)

    def _recognize(self):
        """Blocking provider loop; restarts the call on duration limits."""
        first_chunk: Optional[bytes] = None

        while not self.is_closed:
            generation = self._generation
            try:
                events = self._speech.streaming_recognize(
                    self._requests(generation, first_chunk),
                    self.language_code,
                )
                self._post(_Signal.READY)
                for event in events:
                    if self.is_closed:
                        return
                    self._post(event)
            except Exception as e:
                if self.is_closed:
                    return
                if not is_stream_limit_error(e):
                    self._post(_Failure(e))
                    return
                self._retire_generation()
                logger.info(f"[STT {self.stream_id}] 🔁 Provider stream limit reached, restarting: {e}")
            else:
                if self.is_closed:
                    return
                self._retire_generation()
                logger.info(f"[STT {self.stream_id}] 🔁 Provider closed stream, restarting")

            self._post(_Signal.RESTART)

            # Reopen only once there is audio to send
            first_chunk = self._next_chunk(self._generation)
            if first_chunk is None:
                return

    def _retire_generation(self):
        """Mark the current provider call dead; chunks its request iterator takes from now on are carried over."""
        with self._carry_lock:
            self._generation += 1

    def _requests(self, generation: int, first_chunk: Optional[bytes]) -> Iterator[bytes]:
        if first_chunk is not None:
            yield first_chunk
        while True:
            chunk = self._next_chunk(generation)
            if chunk is None:
                return
            yield chunk

    def _next_chunk(self, generation: int) -> Optional[bytes]:
        """
        Block until the next audio chunk, or None once the stream is closed
        or the caller's provider call has been superseded by a restart.
        """
        while not self.is_closed:
            with self._carry_lock:
                if generation != self._generation:
                    return None
                if self._carry:
                    return self._carry.popleft()

            try:
                chunk = self._audio.get(timeout=STT_QUEUE_POLL_INTERVAL_SEC)
            except queue.Empty:
                continue

            if chunk is None:
                return None

            with self._carry_lock:
                if generation != self._generation:
                    # A dead call's request iterator picked this up; keep it for the new call
                    self._carry.appendleft(chunk)
                    return None

            return chunk

        return None
