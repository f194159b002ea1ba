"""
Translation Broadcaster - final-transcript fan-out.

For every final transcript, each listener in the Broadcast Registry gets
its own independent branch:

    translate(text, target) -> {"type": "translation", ...}
                            -> synthesize(translation, target) -> binary mp3

Branches run as separate tasks so that a slow or failing provider call
only affects its own listener, and never the speaking session's own
transcript stream.

Usage:
    broadcaster = TranslationBroadcaster(registry, translator, synthesizer)
    broadcaster.broadcast("Hello world", origin="a1b2")
"""

import asyncio
import functools
import logging
import time
from concurrent.futures import Executor
from typing import Callable, Dict, Optional, Set, TypeVar, TYPE_CHECKING

from liveword.services.gcp import get_gcp_executor
from liveword.services.metrics import fanout_deliveries, provider_latency
from liveword.services.protocols import TextToSpeechProtocol, TranslationProtocol
from liveword.services.session.registry import BroadcastRegistry
from liveword.services.translation.tts_cache import CacheKey, TTSCache

if TYPE_CHECKING:
    from liveword.services.session.session import TranscriptionSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TranslationBroadcaster:
    """Fans final transcripts out to every registered listener."""

    def __init__(
        self,
        registry: BroadcastRegistry,
        translator: Optional[TranslationProtocol],
        synthesizer: Optional[TextToSpeechProtocol],
        tts_cache: Optional[TTSCache] = None,
        executor: Optional[Executor] = None,
    ):
        self.registry = registry
        self._translator = translator
        self._synthesizer = synthesizer
        self._tts_cache = tts_cache if tts_cache is not None else TTSCache()
        self._executor = executor
        self._tasks: Set[asyncio.Task] = set()
        # cache key -> synthesis in flight
        self._synthesizing: Dict[CacheKey, asyncio.Future] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def cache_stats(self) -> dict:
        return self._tts_cache.get_stats()

    def broadcast(self, text: str, origin: str = "") -> int:
        """
        Start one delivery branch per registered listener.

        Returns immediately with the number of branches started; the caller
        never waits on provider calls.
        """
        if self._translator is None:
            logger.warning("[Broadcast] No translation provider configured, skipping fan-out")
            return 0

        started = 0
        for subscriber, target_language in self.registry.entries():
            if not target_language:
                logger.warning(
                    f"[Broadcast] {subscriber.session_id} has no translation target, skipping"
                )
                fanout_deliveries.labels(stage="translation", status="skipped").inc()
                continue

            task = asyncio.create_task(self._deliver(subscriber, text, target_language))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started += 1

        if started:
            logger.debug(f"[Broadcast] '{text[:40]}' from {origin or '?'} -> {started} listener(s)")
        return started

    async def drain(self):
        """Wait for every in-flight branch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self):
        """Cancel in-flight branches (for shutdown)."""
        tasks = list(self._tasks) + list(self._synthesizing.values())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info(f"[Broadcast] Cancelling {len(tasks)} pending deliveries...")
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _deliver(self, subscriber: "TranscriptionSession", text: str, target_language: str):
        """One listener's translate -> send -> synthesize -> send branch."""
        try:
            translation = await self._call(
                "translate",
                functools.partial(
                    self._translator.translate_text,
                    text,
                    target_language_code=target_language,
                ),
            )
        except Exception as e:
            logger.error(f"[Broadcast] Translation to {target_language} for {subscriber.session_id} failed: {e}")
            fanout_deliveries.labels(stage="translation", status="error").inc()
            return

        if not translation:
            logger.warning(f"[Broadcast] Empty translation to {target_language}, skipping synthesis")
            fanout_deliveries.labels(stage="translation", status="empty").inc()
            return

        if not await subscriber.deliver_translation(translation):
            fanout_deliveries.labels(stage="translation", status="undelivered").inc()
            return
        fanout_deliveries.labels(stage="translation", status="sent").inc()

        if self._synthesizer is None or not subscriber.synthesis_enabled:
            return

        audio = self._tts_cache.get(translation, target_language)
        if audio is None:
            try:
                audio = await self._synthesize(translation, target_language)
            except Exception as e:
                logger.error(f"[Broadcast] Synthesis in {target_language} for {subscriber.session_id} failed: {e}")
                fanout_deliveries.labels(stage="synthesis", status="error").inc()
                return

            if not audio:
                fanout_deliveries.labels(stage="synthesis", status="empty").inc()
                return

        status = "sent" if await subscriber.deliver_audio(audio) else "undelivered"
        fanout_deliveries.labels(stage="synthesis", status=status).inc()

    async def _synthesize(self, translation: str, target_language: str) -> bytes:
        """
        Synthesize once per (text, language) even when several branches ask
        at the same time; later branches await the call already in flight.
        """
        key = TTSCache.get_cache_key(translation, target_language)
        pending = self._synthesizing.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._synthesize_and_cache(translation, target_language))
            self._synthesizing[key] = pending
            pending.add_done_callback(lambda _: self._synthesizing.pop(key, None))
        return await asyncio.shield(pending)

    async def _synthesize_and_cache(self, translation: str, target_language: str) -> bytes:
        audio = await self._call(
            "tts",
            functools.partial(
                self._synthesizer.synthesize,
                translation,
                language_code=target_language,
            ),
        )
        if audio:
            self._tts_cache.put(translation, target_language, audio)
        return audio

    async def _call(self, provider: str, fn: Callable[[], T]) -> T:
        """Run a blocking provider call in the executor, timing it."""
        loop = asyncio.get_running_loop()
        executor = self._executor or get_gcp_executor()

        started = time.perf_counter()
        try:
            return await loop.run_in_executor(executor, fn)
        finally:
            provider_latency.labels(provider=provider).observe(time.perf_counter() - started)
