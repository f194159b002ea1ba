"""
Translation Module

This module contains the final-transcript fan-out:
- TTSCache: LRU cache for synthesized audio
- TranslationBroadcaster: per-listener translate + synthesize branches

Usage:
    from liveword.services.translation import TranslationBroadcaster
"""

from liveword.services.translation.tts_cache import TTSCache
from liveword.services.translation.broadcaster import TranslationBroadcaster

__all__ = [
    "TTSCache",
    "TranslationBroadcaster",
]
