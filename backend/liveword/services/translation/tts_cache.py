"""
TTS Cache for the translation fan-out.

Several listeners subscribed to the same target language receive the same
translated sentence; caching the synthesized audio by (text, language,
voice) means the TTS provider is called once per sentence and language.

Example:
- Two listeners registered for "ES"
- Speaker says "Hello" -> both branches translate to "Hola"
- First branch stores ("Hola", "es", None) -> mp3 bytes
- Second branch awaits that same call (see TranslationBroadcaster), or is
  served from the cache on a later sentence
"""
from collections import OrderedDict
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


class TTSCache:
    """LRU cache for synthesized audio."""

    def __init__(self, maxsize: int = 100):
        """
        Args:
            maxsize: Maximum number of cached clips. MP3 sentences are
                     roughly 10-40KB each.
        """
        self._cache: "OrderedDict[CacheKey, bytes]" = OrderedDict()
        self._maxsize = maxsize
        self._hits = 0
        self._misses = 0

    @staticmethod
    def get_cache_key(text: str, language: str, voice: Optional[str] = None) -> CacheKey:
        return (text, language.lower(), voice or "default")

    def get(self, text: str, language: str, voice: Optional[str] = None) -> Optional[bytes]:
        """Return cached audio, or None on a miss."""
        key = self.get_cache_key(text, language, voice)
        audio = self._cache.get(key)
        if audio is None:
            self._misses += 1
            return None

        self._cache.move_to_end(key)
        self._hits += 1
        logger.debug(f"TTS cache HIT ('{text[:30]}', lang: {language})")
        return audio

    def put(self, text: str, language: str, audio_bytes: bytes, voice: Optional[str] = None):
        """Store audio, evicting the least recently used clip at capacity."""
        if self._maxsize <= 0:
            return

        key = self.get_cache_key(text, language, voice)
        self._cache[key] = audio_bytes
        self._cache.move_to_end(key)

        while len(self._cache) > self._maxsize:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug(f"TTS cache evicted '{evicted[0][:30]}' ({evicted[1]})")

    def get_stats(self) -> dict:
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0

        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
            "cache_size": len(self._cache),
            "max_size": self._maxsize
        }

    def __len__(self) -> int:
        return len(self._cache)
