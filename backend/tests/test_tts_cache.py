"""
Tests for the TTS LRU cache
"""
from liveword.services.translation.tts_cache import TTSCache


def test_hit_and_miss_are_counted():
    cache = TTSCache(maxsize=4)

    assert cache.get("Hola", "ES") is None
    cache.put("Hola", "ES", b"mp3-hola")
    assert cache.get("Hola", "es") == b"mp3-hola"

    stats = cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate_percent"] == 50.0
    assert stats["cache_size"] == 1
    assert stats["max_size"] == 4


def test_voice_is_part_of_the_key():
    cache = TTSCache()
    cache.put("Hola", "es", b"default-voice")
    cache.put("Hola", "es", b"wavenet", voice="es-ES-Wavenet-B")

    assert cache.get("Hola", "es") == b"default-voice"
    assert cache.get("Hola", "es", voice="es-ES-Wavenet-B") == b"wavenet"
    assert len(cache) == 2


def test_least_recently_used_is_evicted():
    cache = TTSCache(maxsize=2)
    cache.put("one", "en", b"1")
    cache.put("two", "en", b"2")

    # Touch "one" so "two" becomes the eviction candidate
    cache.get("one", "en")
    cache.put("three", "en", b"3")

    assert cache.get("two", "en") is None
    assert cache.get("one", "en") == b"1"
    assert cache.get("three", "en") == b"3"


def test_zero_size_disables_caching():
    cache = TTSCache(maxsize=0)
    cache.put("Hola", "es", b"mp3")
    assert len(cache) == 0
    assert cache.get("Hola", "es") is None
