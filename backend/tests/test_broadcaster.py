"""
Tests for the final-transcript fan-out (translate -> send -> synthesize -> send)
"""
import threading
import time

import pytest

from liveword.services.translation import TranslationBroadcaster, TTSCache
from tests.helpers import FakeConnection, FakeSynthesizer, FakeTranslator


class Listener:
    """Minimal fan-out subscriber backed by a FakeConnection."""

    def __init__(self, session_id: str, synthesis_enabled: bool = True):
        self.session_id = session_id
        self.synthesis_enabled = synthesis_enabled
        self.connection = FakeConnection(session_id)
        self.is_closed = False

    async def deliver_translation(self, translation: str) -> bool:
        if self.is_closed:
            return False
        return await self.connection.send_json({"type": "translation", "translation": translation})

    async def deliver_audio(self, audio: bytes) -> bool:
        if self.is_closed:
            return False
        return await self.connection.send_bytes(audio)


@pytest.mark.asyncio
async def test_broadcast_reaches_every_listener(registry, broadcaster):
    es, de = Listener("es"), Listener("de")
    registry.upsert(es, "ES")
    registry.upsert(de, "DE")

    started = broadcaster.broadcast("Hello", origin="speaker")
    await broadcaster.drain()

    assert started == 2
    assert es.connection.translations == ["[ES] Hello"]
    assert es.connection.sent_bytes == [b"mp3:ES:[ES] Hello"]
    assert de.connection.translations == ["[DE] Hello"]
    assert de.connection.sent_bytes == [b"mp3:DE:[DE] Hello"]
    assert broadcaster.pending == 0


@pytest.mark.asyncio
async def test_empty_registry_starts_nothing(broadcaster, translator):
    assert broadcaster.broadcast("Hello") == 0
    await broadcaster.drain()
    assert translator.calls == []


@pytest.mark.asyncio
async def test_translation_failure_skips_synthesis_for_that_listener_only(registry, broadcaster, translator, synthesizer):
    translator.fail_for.add("FR")
    fr, es = Listener("fr"), Listener("es")
    registry.upsert(fr, "FR")
    registry.upsert(es, "ES")

    broadcaster.broadcast("Thanks")
    await broadcaster.drain()

    assert fr.connection.sent_json == []
    assert fr.connection.sent_bytes == []
    assert es.connection.translations == ["[ES] Thanks"]
    assert ("[FR] Thanks", "FR") not in synthesizer.calls


@pytest.mark.asyncio
async def test_empty_translation_is_not_sent_or_synthesized(registry, broadcaster, translator, synthesizer):
    translator.empty_for.add("ES")
    es = Listener("es")
    registry.upsert(es, "ES")

    broadcaster.broadcast("Hmm")
    await broadcaster.drain()

    assert es.connection.sent_json == []
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_synthesis_failure_keeps_text_translation(registry, broadcaster, synthesizer):
    synthesizer.fail_for.add("KO")
    ko = Listener("ko")
    registry.upsert(ko, "KO")

    broadcaster.broadcast("Good night")
    await broadcaster.drain()

    assert ko.connection.translations == ["[KO] Good night"]
    assert ko.connection.sent_bytes == []


@pytest.mark.asyncio
async def test_listener_without_speech_gets_text_only(registry, broadcaster, synthesizer):
    quiet = Listener("quiet", synthesis_enabled=False)
    registry.upsert(quiet, "ES")

    broadcaster.broadcast("Hello")
    await broadcaster.drain()

    assert quiet.connection.translations == ["[ES] Hello"]
    assert quiet.connection.sent_bytes == []
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_listener_without_target_is_skipped(registry, broadcaster, translator):
    undecided, es = Listener("undecided"), Listener("es")
    registry.upsert(undecided, None)
    registry.upsert(es, "ES")

    assert broadcaster.broadcast("Hello") == 1
    await broadcaster.drain()

    assert undecided.connection.sent_json == []
    assert translator.calls == [("Hello", "ES")]


@pytest.mark.asyncio
async def test_removal_mid_fanout_does_not_affect_others(registry, broadcaster):
    leaving, staying = Listener("leaving"), Listener("staying")
    registry.upsert(leaving, "ES")
    registry.upsert(staying, "ES")

    broadcaster.broadcast("Bye")
    # Concurrent disconnect while branches are in flight
    registry.remove(leaving)
    leaving.is_closed = True
    await broadcaster.drain()

    assert leaving.connection.sent_json == []
    assert staying.connection.translations == ["[ES] Bye"]
    assert staying.connection.sent_bytes == [b"mp3:ES:[ES] Bye"]


@pytest.mark.asyncio
async def test_synthesized_audio_is_cached_per_language(registry, translator, synthesizer):
    cache = TTSCache(maxsize=10)
    broadcaster = TranslationBroadcaster(registry, translator, synthesizer, tts_cache=cache)
    first, second = Listener("first"), Listener("second")
    registry.upsert(first, "ES")

    broadcaster.broadcast("Hello")
    await broadcaster.drain()
    registry.upsert(second, "ES")
    registry.remove(first)
    broadcaster.broadcast("Hello")
    await broadcaster.drain()

    assert synthesizer.calls == [("[ES] Hello", "ES")]
    assert second.connection.sent_bytes == [b"mp3:ES:[ES] Hello"]
    assert cache.get_stats()["hits"] == 1


@pytest.mark.asyncio
async def test_no_translator_skips_fanout(registry, synthesizer):
    broadcaster = TranslationBroadcaster(registry, translator=None, synthesizer=synthesizer)
    es = Listener("es")
    registry.upsert(es, "ES")

    assert broadcaster.broadcast("Hello") == 0
    await broadcaster.drain()
    assert es.connection.sent_json == []


@pytest.mark.asyncio
async def test_no_synthesizer_sends_text_only(registry, translator):
    broadcaster = TranslationBroadcaster(registry, translator=translator, synthesizer=None)
    es = Listener("es")
    registry.upsert(es, "ES")

    broadcaster.broadcast("Hello")
    await broadcaster.drain()

    assert es.connection.translations == ["[ES] Hello"]
    assert es.connection.sent_bytes == []


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_branches(registry):
    release = threading.Event()

    class SlowTranslator(FakeTranslator):
        def translate_text(self, text, *, target_language_code, source_language_code=None):
            release.wait(timeout=2)
            return super().translate_text(text, target_language_code=target_language_code)

    broadcaster = TranslationBroadcaster(registry, SlowTranslator(), FakeSynthesizer())
    es = Listener("es")
    registry.upsert(es, "ES")

    broadcaster.broadcast("Hello")
    assert broadcaster.pending == 1

    await broadcaster.shutdown()
    release.set()

    assert broadcaster.pending == 0
    assert es.connection.sent_json == []


@pytest.mark.asyncio
async def test_listeners_on_same_language_share_one_synthesis(registry, translator):
    class SlowSynthesizer(FakeSynthesizer):
        def synthesize(self, text, *, language_code, voice_name=None) -> bytes:
            time.sleep(0.1)
            return super().synthesize(text, language_code=language_code)

    synthesizer = SlowSynthesizer()
    broadcaster = TranslationBroadcaster(registry, translator, synthesizer, tts_cache=TTSCache(maxsize=10))
    first, second, third = Listener("first"), Listener("second"), Listener("third")
    registry.upsert(first, "ES")
    registry.upsert(second, "ES")
    registry.upsert(third, "DE")

    assert broadcaster.broadcast("Hello") == 3
    await broadcaster.drain()

    assert sorted(synthesizer.calls) == [("[DE] Hello", "DE"), ("[ES] Hello", "ES")]
    assert first.connection.sent_bytes == [b"mp3:ES:[ES] Hello"]
    assert second.connection.sent_bytes == [b"mp3:ES:[ES] Hello"]
    assert third.connection.sent_bytes == [b"mp3:DE:[DE] Hello"]


@pytest.mark.asyncio
async def test_shared_synthesis_failure_reaches_every_waiting_listener(registry, translator):
    class SlowSynthesizer(FakeSynthesizer):
        def synthesize(self, text, *, language_code, voice_name=None) -> bytes:
            time.sleep(0.1)
            return super().synthesize(text, language_code=language_code)

    synthesizer = SlowSynthesizer(fail_for={"ES"})
    broadcaster = TranslationBroadcaster(registry, translator, synthesizer)
    first, second = Listener("first"), Listener("second")
    registry.upsert(first, "ES")
    registry.upsert(second, "ES")

    broadcaster.broadcast("Hello")
    await broadcaster.drain()

    assert len(synthesizer.calls) == 1
    assert first.connection.translations == ["[ES] Hello"]
    assert second.connection.translations == ["[ES] Hello"]
    assert first.connection.sent_bytes == []
    assert second.connection.sent_bytes == []
